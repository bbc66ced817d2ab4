"""
Schedule Resolver.

Resolves the effective open/close/slot window of a business or one staff
member on a calendar date from layered configuration.

Resolution order (highest priority first):
    1. Staff day override for the weekday (inactive -> closed)
    2. Staff default hours (only when the staff member does not delegate)
    3. Business day override for the weekday (inactive -> closed),
       falling back to the business top-level open/close/slot
    4. Nothing resolved -> closed (None)

A staff member with schedule.use_business_hours == True skips layers 1
and 2 entirely.

CRITICAL INVARIANTS:
- Pure function of (configuration snapshot, date): no I/O, no mutation
- Returns None for a closed day, never raises for one
- A resolved window with open >= close is treated as closed
"""

from datetime import date
from typing import Any, Dict, List, Optional

from agenda_core.contracts.booking import (
    BusinessHours,
    DayOverride,
    Hours,
    StaffDaySchedule,
    StaffMember,
)
from agenda_core.logger import get_logger
from availability.config import DEFAULT_SLOT_MINUTES
from availability.time_arithmetic import (
    SlotSequence,
    as_date,
    domain_weekday,
    generate_slots,
    time_to_minutes,
)

logger = get_logger(__name__)


# =============================================================================
# LAYER LOOKUPS
# =============================================================================

def _day_entry(entries: Optional[List[Dict[str, Any]]], weekday: int) -> Optional[Dict[str, Any]]:
    """Return the first override entry for the weekday, if any."""
    for entry in entries or []:
        if entry.get("day") == weekday:
            return entry
    return None


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value > 0:
        return value
    return None


def _delegates_to_business(staff: StaffMember) -> bool:
    schedule = staff.get("schedule") or {}
    return schedule.get("use_business_hours") is True


def _business_slot_minutes(business_hours: Optional[BusinessHours]) -> int:
    if not business_hours:
        return DEFAULT_SLOT_MINUTES
    return _positive_int(business_hours.get("slot_minutes")) or DEFAULT_SLOT_MINUTES


def _finalize(open_time: Optional[str], close_time: Optional[str], slot_minutes: int, source: str) -> Optional[Hours]:
    """Build an Hours window, or None when it is empty or incomplete."""
    if not open_time or not close_time:
        return None
    if time_to_minutes(open_time) >= time_to_minutes(close_time):
        logger.debug(f"Empty window {open_time}-{close_time} from {source}, treating as closed")
        return None
    return Hours(open=open_time, close=close_time, slot_minutes=slot_minutes)


def _resolve_business(business_hours: Optional[BusinessHours], weekday: int) -> Optional[Hours]:
    """Layer 3: business day override, then business defaults."""
    if not business_hours:
        return None

    slot_minutes = _business_slot_minutes(business_hours)
    override: Optional[DayOverride] = _day_entry(business_hours.get("days"), weekday)

    if override is not None:
        if override.get("active") is False:
            return None
        return _finalize(
            override.get("open") or business_hours.get("open"),
            override.get("close") or business_hours.get("close"),
            slot_minutes,
            source=f"business day {weekday}",
        )

    return _finalize(
        business_hours.get("open"),
        business_hours.get("close"),
        slot_minutes,
        source="business default",
    )


def _resolve_staff(
    staff: StaffMember,
    business_hours: Optional[BusinessHours],
    weekday: int,
) -> "Optional[Hours] | bool":
    """
    Layers 1 and 2 for a non-delegating staff member.

    Returns:
        Hours when a staff layer resolves, None when a staff layer closes
        the day, False when no staff layer applies (fall through).
    """
    fallback_slot = _business_slot_minutes(business_hours)
    schedule = staff.get("schedule") or {}

    day_override: Optional[StaffDaySchedule] = _day_entry(schedule.get("days"), weekday)
    if day_override is not None:
        if day_override.get("active") is False:
            return None
        return _finalize(
            day_override.get("open"),
            day_override.get("close"),
            _positive_int(day_override.get("slot_minutes")) or fallback_slot,
            source=f"staff {staff.get('id')} day {weekday}",
        )

    hours = staff.get("hours")
    if hours and hours.get("open") and hours.get("close"):
        days_of_week = hours.get("days_of_week")
        if days_of_week is not None and weekday not in days_of_week:
            return None
        return _finalize(
            hours.get("open"),
            hours.get("close"),
            _positive_int(hours.get("slot_minutes")) or fallback_slot,
            source=f"staff {staff.get('id')} default",
        )

    return False


# =============================================================================
# PUBLIC API
# =============================================================================

def resolve_effective_hours(
    business_hours: Optional[BusinessHours],
    day: "date | str",
    staff: Optional[StaffMember] = None,
) -> Optional[Hours]:
    """
    Resolve the effective hours of a business or staff member on a date.

    Args:
        business_hours: Tenant business hours (None when no profile).
        day: Calendar date or "YYYY-MM-DD" key.
        staff: Staff member to resolve for; None resolves the business.

    Returns:
        Hours dict {open, close, slot_minutes}, or None when closed.
    """
    weekday = domain_weekday(as_date(day))

    if staff is not None and not _delegates_to_business(staff):
        resolved = _resolve_staff(staff, business_hours, weekday)
        if resolved is not False:
            return resolved

    return _resolve_business(business_hours, weekday)


def generate_slots_for_hours(hours: Optional[Hours]) -> SlotSequence:
    """
    Slot starts for a resolved window; an empty sequence when closed.

    Args:
        hours: Output of resolve_effective_hours.

    Returns:
        SlotSequence over [open, close).
    """
    if not hours:
        return generate_slots("00:00", "00:00", DEFAULT_SLOT_MINUTES)
    step = _positive_int(hours.get("slot_minutes")) or DEFAULT_SLOT_MINUTES
    return generate_slots(hours["open"], hours["close"], step)
