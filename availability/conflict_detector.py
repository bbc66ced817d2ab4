"""
Conflict Detector.

Decides whether a candidate interval overlaps an existing reservation of
the same staff member on the same date.

CRITICAL INVARIANTS:
- Intervals are half-open: [start, end). Touching intervals never overlap
- Cancelled reservations never conflict
- The reservation being edited (exclude_id) never conflicts with itself
- Missing end times are derived by service_catalog, same as the write path
"""

from typing import List, Optional

from agenda_core.contracts.booking import Reservation, is_cancelled
from availability.config import DEFAULT_DURATION_MINUTES
from availability.service_catalog import get_reservation_end_time
from availability.time_arithmetic import time_to_minutes


def is_overlapping(start1: int, end1: int, start2: int, end2: int) -> bool:
    """
    Check whether [start1, end1) and [start2, end2) overlap.

    Args:
        start1, end1: First interval in minute offsets.
        start2, end2: Second interval in minute offsets.

    Returns:
        True iff start1 < end2 and start2 < end1.
    """
    return start1 < end2 and start2 < end1


def is_overlapping_times(start1: str, end1: str, start2: str, end2: str) -> bool:
    """is_overlapping over "HH:MM" strings."""
    return is_overlapping(
        time_to_minutes(start1),
        time_to_minutes(end1),
        time_to_minutes(start2),
        time_to_minutes(end2),
    )


def reservation_end_time(reservation: Reservation, default_duration: int = DEFAULT_DURATION_MINUTES) -> str:
    """End of an existing reservation: end_time, else time + duration, else time + default."""
    return get_reservation_end_time(reservation, default_duration)


def _competing(
    staff_id: str,
    date_id: str,
    reservations: List[Reservation],
    exclude_id: Optional[str],
) -> List[Reservation]:
    """Reservations that share staff and date and still occupy time."""
    return [
        r for r in reservations
        if r.get("staff_id") == staff_id
        and r.get("date_id") == date_id
        and not is_cancelled(r)
        and not (exclude_id and r.get("id") == exclude_id)
    ]


def find_conflicts(
    staff_id: str,
    date_id: str,
    start_time: str,
    end_time: str,
    reservations: List[Reservation],
    exclude_id: Optional[str] = None,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> List[Reservation]:
    """
    Reservations that overlap the candidate interval.

    Args:
        staff_id: Staff member of the candidate booking.
        date_id: "YYYY-MM-DD" of the candidate booking.
        start_time: Candidate start "HH:MM".
        end_time: Candidate end "HH:MM".
        reservations: Snapshot of existing reservations.
        exclude_id: Reservation id to ignore (edits).
        default_duration: Duration assumed for reservations without one.

    Returns:
        Conflicting reservations, snapshot order.
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)

    conflicts = []
    for r in _competing(staff_id, date_id, reservations, exclude_id):
        r_start = time_to_minutes(r["time"])
        r_end = time_to_minutes(reservation_end_time(r, default_duration))
        if is_overlapping(start, end, r_start, r_end):
            conflicts.append(r)
    return conflicts


def has_conflict(
    staff_id: str,
    date_id: str,
    start_time: str,
    end_time: str,
    reservations: List[Reservation],
    exclude_id: Optional[str] = None,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> bool:
    """
    True when the staff member is already booked within [start, end).

    O(n) over the snapshot; n is bounded by slots per day.
    """
    return bool(
        find_conflicts(
            staff_id, date_id, start_time, end_time,
            reservations, exclude_id, default_duration,
        )
    )


def count_reservations(staff_id: str, date_id: str, reservations: List[Reservation]) -> int:
    """Non-cancelled reservations of a staff member on a date."""
    return len(_competing(staff_id, date_id, reservations, None))
