"""
Staff Selector.

Finds which staff members can take a slot and auto-assigns the least
loaded one.

CRITICAL INVARIANTS:
- Output preserves roster order (stable filter)
- Ties on load are broken by roster position, first occurrence wins
"""

from datetime import date
from typing import List, Optional

from agenda_core.contracts.booking import BusinessHours, Reservation, StaffMember
from agenda_core.logger import get_logger
from availability.booking_validator import NowSource, can_book_slot
from availability.config import EngineSettings
from availability.conflict_detector import count_reservations
from availability.time_arithmetic import as_date, format_date_id

logger = get_logger(__name__)


def find_available_staff(
    staff: List[StaffMember],
    day: "date | str",
    start_time: str,
    duration_minutes: int,
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    service_id: Optional[str] = None,
    now: NowSource = None,
    settings: Optional[EngineSettings] = None,
) -> List[StaffMember]:
    """
    Staff members for whom the single-staff booking check passes.

    Args:
        staff: Roster, in display order.
        day: Calendar date or "YYYY-MM-DD".
        start_time: "HH:MM" start.
        duration_minutes: Booking length.
        business_hours: Tenant business hours.
        reservations: Snapshot of reservations for that date.
        service_id: Requested service, if any.
        now: Current time for the past-time check.
        settings: Engine policy.

    Returns:
        Available staff members, roster order.
    """
    available = [
        member for member in staff
        if can_book_slot(
            member, day, start_time, duration_minutes, business_hours,
            reservations, service_id=service_id, now=now, settings=settings,
        ).get("can_book")
    ]
    logger.debug(f"{len(available)}/{len(staff)} staff available at {day} {start_time}")
    return available


def auto_select_staff(
    staff: List[StaffMember],
    day: "date | str",
    start_time: str,
    duration_minutes: int,
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    service_id: Optional[str] = None,
    now: NowSource = None,
    settings: Optional[EngineSettings] = None,
) -> Optional[StaffMember]:
    """
    Pick the available staff member with the fewest bookings that day.

    Returns:
        Selected staff member, or None when nobody is available.
    """
    available = find_available_staff(
        staff, day, start_time, duration_minutes, business_hours,
        reservations, service_id=service_id, now=now, settings=settings,
    )
    if not available:
        return None

    date_id = format_date_id(as_date(day))
    # min() keeps the first of equal keys, so roster order breaks ties
    selected = min(
        available,
        key=lambda member: count_reservations(member.get("id"), date_id, reservations),
    )
    logger.info(f"Auto-selected staff {selected.get('id')} for {date_id} {start_time}")
    return selected
