"""
Booking Validator.

Runs the ordered booking checks over a candidate and reports the first
failure as a ValidationResult.

CRITICAL INVARIANTS:
- Checks short-circuit: the first failing check decides reason and code
- Pure over the data passed in; `now` is injected, never read implicitly
  except as the documented default
- Missing tenant configuration fails open unless strict mode is enabled
- Unexpected exceptions are not converted into rejections
"""

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

from agenda_core.contracts.booking import (
    BookingRequest,
    BusinessHours,
    Reservation,
    Service,
    StaffMember,
    ValidationResult,
)
from agenda_core.errors import BookingError, ConfigurationAbsentError
from agenda_core.logger import get_logger
from availability.checks import BookingCheck, default_checks
from availability.config import EngineSettings
from availability.service_catalog import find_service, get_service_duration
from availability.time_arithmetic import (
    add_minutes_to_time,
    as_date,
    format_date_id,
    time_to_minutes,
)

logger = get_logger(__name__)

NowSource = Union[datetime, Callable[[], datetime], None]


def resolve_now(now: NowSource) -> datetime:
    """
    Current time from an injected value or callable; wall clock otherwise.

    Schedules are naive local wall-clock times, so a timezone-aware value is
    converted to local time and stripped of its tzinfo.
    """
    if now is None:
        return datetime.now()
    value = now() if callable(now) else now
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class BookingValidator:
    """
    Sequential check executor.

    Executes checks in order, passing the candidate context between them.
    Architecture: Candidate -> Check1 -> Check2 -> ... -> ValidationResult
    """

    def __init__(self, checks: Optional[List[BookingCheck]] = None) -> None:
        """
        Initialize the validator.

        Args:
            checks: Ordered checks; defaults to the standard sequence.

        Raises:
            ValueError: If an explicit checks list is empty.
        """
        if checks is not None and not checks:
            raise ValueError("Validator must contain at least one check")
        self.checks = checks if checks is not None else default_checks()

    def validate(self, initial_candidate: Dict[str, Any]) -> ValidationResult:
        """
        Run every check until one rejects.

        Args:
            initial_candidate: Candidate booking context.

        Returns:
            {"can_book": True} or the rejection of the first failing check.

        Raises:
            RuntimeError: If a check fails with a non-booking error.
        """
        candidate = dict(initial_candidate)

        for check in self.checks:
            try:
                result = check.run(candidate)
            except BookingError as e:
                logger.info(
                    f"Booking rejected by {check.name}: {e.code} "
                    f"({candidate.get('date_id')} {candidate.get('start_time')}, "
                    f"staff={candidate.get('staff_id') or '-'})"
                )
                return ValidationResult(**e.to_dict())
            except Exception as e:
                logger.exception(f"Check '{check.name}' failed with error: {e}")
                raise RuntimeError(f"Validation stopped at check '{check.name}': {e}") from e

            candidate.update(result)
            logger.debug(f"Check '{check.name}' passed")

        return ValidationResult(can_book=True)

    def __repr__(self) -> str:
        return f"BookingValidator(checks={[c.name for c in self.checks]})"


_default_validator = BookingValidator()


# =============================================================================
# CONTEXT
# =============================================================================

class BookingContext:
    """
    Point-in-time snapshot the validator checks a request against.

    business_hours is None when the tenant has no profile on record.
    """

    __slots__ = ("business_hours", "staff", "services", "reservations", "now", "settings", "client_id")

    def __init__(
        self,
        business_hours: Optional[BusinessHours],
        staff: Optional[List[StaffMember]] = None,
        services: Optional[List[Service]] = None,
        reservations: Optional[List[Reservation]] = None,
        now: NowSource = None,
        settings: Optional[EngineSettings] = None,
        client_id: Optional[str] = None,
    ) -> None:
        self.business_hours = business_hours
        self.staff = list(staff or [])
        self.services = list(services or [])
        self.reservations = list(reservations or [])
        self.now = now
        self.settings = settings or EngineSettings()
        self.client_id = client_id

    def find_staff(self, staff_id: Optional[str]) -> Optional[StaffMember]:
        if not staff_id:
            return None
        for member in self.staff:
            if member.get("id") == staff_id:
                return member
        return None

    def __repr__(self) -> str:
        return (
            f"BookingContext(client_id={self.client_id!r}, staff={len(self.staff)}, "
            f"reservations={len(self.reservations)})"
        )


# =============================================================================
# PUBLIC API
# =============================================================================

def build_candidate(
    day: "date | str",
    start_time: str,
    duration_minutes: int,
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    settings: EngineSettings,
    now: NowSource = None,
    staff: Optional[StaffMember] = None,
    staff_id: Optional[str] = None,
    service_id: Optional[str] = None,
    exclude_id: Optional[str] = None,
    client_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assemble the candidate context consumed by the checks.

    Raises:
        FormatError: If the date or start time is malformed.
        ValueError: If duration_minutes is not positive.
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    target_day = as_date(day)
    time_to_minutes(start_time)

    return {
        "client_id": client_id,
        "day": target_day,
        "date_id": format_date_id(target_day),
        "start_time": start_time,
        "end_time": add_minutes_to_time(start_time, duration_minutes),
        "duration_minutes": duration_minutes,
        "business_hours": business_hours,
        "reservations": reservations,
        "staff": staff,
        "staff_id": staff_id or (staff.get("id") if staff else None),
        "service_id": service_id,
        "exclude_id": exclude_id,
        "now": resolve_now(now),
        "settings": settings,
    }


def can_book_slot(
    staff: StaffMember,
    day: "date | str",
    start_time: str,
    duration_minutes: int,
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    service_id: Optional[str] = None,
    exclude_id: Optional[str] = None,
    now: NowSource = None,
    settings: Optional[EngineSettings] = None,
    validator: Optional[BookingValidator] = None,
) -> ValidationResult:
    """
    Check whether one staff member can take a booking.

    Args:
        staff: Staff member to book.
        day: Calendar date or "YYYY-MM-DD".
        start_time: "HH:MM" start.
        duration_minutes: Booking length.
        business_hours: Tenant business hours (None fails open).
        reservations: Snapshot of reservations for that date.
        service_id: Requested service, if any.
        exclude_id: Reservation being edited, if any.
        now: Current time (value or callable) for the past-time check.
        settings: Engine policy.
        validator: Custom check sequence.

    Returns:
        ValidationResult.
    """
    try:
        candidate = build_candidate(
            day, start_time, duration_minutes, business_hours, reservations,
            settings or EngineSettings(), now=now, staff=staff,
            service_id=service_id, exclude_id=exclude_id,
        )
    except BookingError as e:
        return ValidationResult(**e.to_dict())
    return (validator or _default_validator).validate(candidate)


def request_duration(request: BookingRequest, context: BookingContext) -> int:
    """Requested duration, else the service's, else the configured default."""
    duration = request.get("duration_minutes")
    if isinstance(duration, int) and not isinstance(duration, bool) and duration > 0:
        return duration
    service = find_service(context.services, request.get("service_id"))
    return get_service_duration(service, context.settings.default_duration_minutes)


def validate_booking(
    request: BookingRequest,
    context: BookingContext,
    validator: Optional[BookingValidator] = None,
) -> ValidationResult:
    """
    Validate a booking request against a tenant snapshot.

    A requested staff id missing from the roster is treated like missing
    configuration: no staff restrictions apply (conflicts on that id are
    still checked) unless strict mode is on.

    Args:
        request: Booking request.
        context: Snapshot of configuration, reservations and time.
        validator: Custom check sequence.

    Returns:
        ValidationResult.
    """
    staff_id = request.get("staff_id") or None
    staff = context.find_staff(staff_id)

    try:
        if staff_id and staff is None:
            if context.settings.strict_mode:
                raise ConfigurationAbsentError(f"Empleado no encontrado: {staff_id}")
            logger.warning(f"Staff {staff_id} not in roster: skipping staff restrictions")

        candidate = build_candidate(
            request.get("date_id", ""),
            request.get("time", ""),
            request_duration(request, context),
            context.business_hours,
            context.reservations,
            context.settings,
            now=context.now,
            staff=staff,
            staff_id=staff_id,
            service_id=request.get("service_id") or None,
            exclude_id=request.get("exclude_id") or None,
            client_id=request.get("client_id") or context.client_id,
        )
    except BookingError as e:
        return ValidationResult(**e.to_dict())

    return (validator or _default_validator).validate(candidate)
