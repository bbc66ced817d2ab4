"""
Time arithmetic for "HH:MM" strings and calendar dates.

Pure functions, no I/O. Times are minute offsets from midnight of the
booking date; nothing here wraps across midnight.

CRITICAL INVARIANTS:
- minutes_to_time never clamps: 1500 minutes renders as "25:00"
- Slot starts are generated over the half-open window [open, close)
- domain_weekday is the ONLY place a native weekday becomes Monday=0
"""

from datetime import date, datetime, timedelta
from typing import Iterator

from agenda_core.errors import FormatError


DATE_ID_FORMAT = "%Y-%m-%d"


# =============================================================================
# TIME STRINGS
# =============================================================================

def time_to_minutes(value: str) -> int:
    """
    Convert a "HH:MM" string to minutes since midnight.

    A missing minutes component counts as zero ("9" -> 540). Values are
    not range-checked beyond numeric parsing.

    Args:
        value: Time string.

    Returns:
        Minute offset.

    Raises:
        FormatError: If either component is not an integer.
    """
    if not isinstance(value, str) or not value.strip():
        raise FormatError(f"Hora inválida: {value!r}")

    parts = value.strip().split(":")
    try:
        hours = int(parts[0])
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] != "" else 0
    except ValueError as e:
        raise FormatError(f"Hora inválida: {value!r}") from e

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded "HH:MM"."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def add_minutes_to_time(value: str, delta: int) -> str:
    """Add delta minutes to a "HH:MM" string."""
    return minutes_to_time(time_to_minutes(value) + delta)


# =============================================================================
# SLOT GENERATION
# =============================================================================

class SlotSequence:
    """
    Re-iterable sequence of slot start times over [open, close).

    A slot starting at close could not hold any booking, so close itself
    is never emitted.
    """

    __slots__ = ("open", "close", "step", "_start", "_end")

    def __init__(self, open_time: str, close_time: str, step_minutes: int) -> None:
        if step_minutes <= 0:
            raise ValueError(f"Slot step must be positive, got {step_minutes}")
        self.open = open_time
        self.close = close_time
        self.step = int(step_minutes)
        self._start = time_to_minutes(open_time)
        self._end = time_to_minutes(close_time)

    def __iter__(self) -> Iterator[str]:
        for t in range(self._start, self._end, self.step):
            yield minutes_to_time(t)

    def __len__(self) -> int:
        return len(range(self._start, self._end, self.step))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, str):
            return False
        t = time_to_minutes(item)
        return t in range(self._start, self._end, self.step)

    def __repr__(self) -> str:
        return f"SlotSequence({self.open!r}, {self.close!r}, step={self.step})"


def generate_slots(open_time: str, close_time: str, step_minutes: int) -> SlotSequence:
    """
    Generate slot start times from open (inclusive) to close (exclusive).

    Args:
        open_time: "HH:MM" first slot.
        close_time: "HH:MM" closing time.
        step_minutes: Minutes between consecutive slot starts.

    Returns:
        SlotSequence that can be iterated more than once.

    Raises:
        ValueError: If step_minutes is not positive.
        FormatError: If either time is malformed.
    """
    return SlotSequence(open_time, close_time, step_minutes)


# =============================================================================
# DATES AND WEEKDAYS
# =============================================================================

def sunday_based_to_domain(native_weekday: int) -> int:
    """Convert a Sunday=0 weekday number to the Monday=0 domain index."""
    return (int(native_weekday) + 6) % 7


def domain_weekday(day: date) -> int:
    """
    Weekday index of a calendar date, Monday=0 ... Sunday=6.

    Every weekday lookup in the engine goes through this function.
    """
    return sunday_based_to_domain(int(day.strftime("%w")))


def parse_date_id(date_id: str) -> date:
    """
    Parse a "YYYY-MM-DD" date key.

    Raises:
        FormatError: If the string is not a valid date.
    """
    try:
        return datetime.strptime(str(date_id).strip(), DATE_ID_FORMAT).date()
    except ValueError as e:
        raise FormatError(f"Fecha inválida: {date_id!r}") from e


def format_date_id(day: date) -> str:
    """Format a date as the "YYYY-MM-DD" key used by reservation documents."""
    return day.strftime(DATE_ID_FORMAT)


def as_date(value: "date | str") -> date:
    """Accept either a date or a "YYYY-MM-DD" key."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_id(value)


def combine(day: date, value: str) -> datetime:
    """
    Naive datetime for a "HH:MM" on a given date.

    Uses minute arithmetic so "24:00" lands on the next midnight instead of
    raising.
    """
    base = datetime(day.year, day.month, day.day)
    return base + timedelta(minutes=time_to_minutes(value))
