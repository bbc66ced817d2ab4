"""
Day agenda and booking-page helpers.

Builds the per-day grid shown on the dashboard and the list of start
times a customer can still pick on the public booking page.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from agenda_core.contracts.booking import (
    BusinessHours,
    Hours,
    Reservation,
    StaffMember,
)
from availability.booking_validator import NowSource, can_book_slot
from availability.config import NEXT_WORKING_DATE_LOOKAHEAD_DAYS, EngineSettings
from availability.schedule_resolver import generate_slots_for_hours, resolve_effective_hours
from availability.time_arithmetic import as_date, format_date_id


def build_day_agenda(
    day: "date | str",
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    staff: Optional[List[StaffMember]] = None,
) -> Dict[str, Any]:
    """
    Slots of a business day with the reservations starting in each.

    Args:
        day: Calendar date or "YYYY-MM-DD".
        business_hours: Tenant business hours.
        reservations: Reservations of the tenant (any dates).
        staff: Roster used to fill missing staff names.

    Returns:
        {"slots": [{"time", "reservations"}], "closed": bool, "hours": Hours | None}
    """
    target_day = as_date(day)
    hours = resolve_effective_hours(business_hours, target_day)
    if hours is None:
        return {"slots": [], "closed": True, "hours": None}

    date_id = format_date_id(target_day)
    names = {member.get("id"): member.get("name") for member in staff or []}

    slots = []
    for label in generate_slots_for_hours(hours):
        starting = []
        for reservation in reservations:
            if reservation.get("date_id") != date_id or reservation.get("time") != label:
                continue
            entry = dict(reservation)
            if not entry.get("staff_name") and entry.get("staff_id") in names:
                entry["staff_name"] = names[entry["staff_id"]]
            starting.append(entry)
        slots.append({"time": label, "reservations": starting})

    return {"slots": slots, "closed": False, "hours": hours}


def get_next_working_date(
    business_hours: Optional[BusinessHours],
    from_date: "date | str",
    lookahead_days: int = NEXT_WORKING_DATE_LOOKAHEAD_DAYS,
) -> Optional[date]:
    """
    First date on or after from_date on which the business is open.

    Returns:
        The date, or None when nothing opens within the lookahead window.
    """
    if not business_hours:
        return None
    start = as_date(from_date)
    for offset in range(lookahead_days):
        candidate = start + timedelta(days=offset)
        if resolve_effective_hours(business_hours, candidate) is not None:
            return candidate
    return None


def available_slots(
    staff: StaffMember,
    day: "date | str",
    duration_minutes: int,
    business_hours: Optional[BusinessHours],
    reservations: List[Reservation],
    service_id: Optional[str] = None,
    now: NowSource = None,
    settings: Optional[EngineSettings] = None,
) -> List[str]:
    """
    Start times on which staff can still take a booking of this length.

    Slot starts come from the staff member's effective hours; each one is
    kept only if the full booking check passes.
    """
    hours: Optional[Hours] = resolve_effective_hours(business_hours, day, staff)
    return [
        label for label in generate_slots_for_hours(hours)
        if can_book_slot(
            staff, day, label, duration_minutes, business_hours, reservations,
            service_id=service_id, now=now, settings=settings,
        ).get("can_book")
    ]
