"""
Tenant document normalization.

Converts raw profile and reservation documents (camelCase, as stored by
the dashboard) into the snake_case contracts the engine consumes. Invalid
entries are dropped, not raised.
"""

from typing import Any, Dict, List, Optional

from agenda_core.contracts.booking import (
    BusinessHours,
    BusinessProfile,
    DayOverride,
    Reservation,
    ReservationStatus,
    Service,
    StaffDaySchedule,
    StaffHours,
    StaffMember,
    optional_str,
)
from agenda_core.logger import get_logger
from availability.config import DEFAULT_HOURS

logger = get_logger(__name__)

# Staff documents created through the staff endpoint carry a status string
INACTIVE_STAFF_STATUSES = frozenset(["inactivo", "inactive"])


def _is_weekday(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and value > 0:
        return int(value)
    return None


def _has_window(doc: Any) -> bool:
    return isinstance(doc, dict) and isinstance(doc.get("open"), str) and isinstance(doc.get("close"), str) \
        and bool(doc["open"]) and bool(doc["close"])


# =============================================================================
# BUSINESS HOURS
# =============================================================================

def normalize_business_hours(doc: Optional[Dict[str, Any]]) -> BusinessHours:
    """
    Normalize a stored hours block.

    Falls back to the default 09:00-18:00 window when open, close or
    slotMinutes are missing. Day overrides with an invalid weekday or
    without open/close strings are dropped.
    """
    slot_minutes = _positive_int((doc or {}).get("slotMinutes"))
    if not _has_window(doc) or slot_minutes is None:
        hours = BusinessHours(
            open=DEFAULT_HOURS["open"],
            close=DEFAULT_HOURS["close"],
            slot_minutes=DEFAULT_HOURS["slot_minutes"],
        )
    else:
        hours = BusinessHours(open=doc["open"], close=doc["close"], slot_minutes=slot_minutes)

    days: List[DayOverride] = []
    seen = set()
    for entry in (doc or {}).get("days") or []:
        if not isinstance(entry, dict) or not _is_weekday(entry.get("day")):
            continue
        if entry["day"] in seen:
            logger.debug(f"Duplicate business override for weekday {entry['day']} ignored")
            continue
        active = entry.get("active") is not False
        if active and not _has_window(entry):
            continue
        override = DayOverride(day=entry["day"], active=active)
        if _has_window(entry):
            override["open"] = entry["open"]
            override["close"] = entry["close"]
        days.append(override)
        seen.add(entry["day"])

    if days:
        hours["days"] = days
    return hours


# =============================================================================
# STAFF
# =============================================================================

def _normalize_staff_hours(doc: Any) -> Optional[StaffHours]:
    if not _has_window(doc):
        return None
    hours = StaffHours(open=doc["open"], close=doc["close"])
    slot_minutes = _positive_int(doc.get("slotMinutes"))
    if slot_minutes:
        hours["slot_minutes"] = slot_minutes
    days_of_week = doc.get("daysOfWeek")
    if isinstance(days_of_week, list):
        hours["days_of_week"] = [d for d in days_of_week if _is_weekday(d)]
    return hours


def _normalize_staff_day(entry: Any) -> Optional[StaffDaySchedule]:
    if not isinstance(entry, dict) or not _is_weekday(entry.get("day")):
        return None
    active = entry.get("active") is not False
    if active and not _has_window(entry):
        return None
    day = StaffDaySchedule(day=entry["day"], active=active)
    if _has_window(entry):
        day["open"] = entry["open"]
        day["close"] = entry["close"]
    slot_minutes = _positive_int(entry.get("slotMinutes"))
    if slot_minutes:
        day["slot_minutes"] = slot_minutes
    return day


def normalize_staff_member(doc: Dict[str, Any]) -> Optional[StaffMember]:
    """
    Normalize one stored staff document.

    Returns:
        StaffMember, or None when the document has no id.
    """
    staff_id = optional_str(doc.get("id") or doc.get("_id"))
    if staff_id is None:
        return None

    status = str(doc.get("status") or "").strip().lower()
    active = doc.get("active") is not False and status not in INACTIVE_STAFF_STATUSES

    member = StaffMember(id=staff_id, name=str(doc.get("name") or ""), active=active)

    service_ids = doc.get("serviceIds")
    if isinstance(service_ids, list):
        member["service_ids"] = [str(s) for s in service_ids if optional_str(s)]

    hours = _normalize_staff_hours(doc.get("hours"))
    if hours:
        member["hours"] = hours

    schedule = doc.get("schedule")
    if isinstance(schedule, dict):
        days = [d for d in (_normalize_staff_day(e) for e in schedule.get("days") or []) if d]
        member["schedule"] = {
            "use_business_hours": schedule.get("useBusinessHours") is True,
            "days": days,
        }

    return member


# =============================================================================
# SERVICES AND RESERVATIONS
# =============================================================================

def normalize_service(doc: Dict[str, Any]) -> Optional[Service]:
    """Normalize one stored service; None when it has no id or name."""
    service_id = optional_str(doc.get("id") or doc.get("_id"))
    name = optional_str(doc.get("name"))
    if service_id is None or name is None:
        return None

    service = Service(id=service_id, name=name, active=doc.get("active") is not False)
    duration = _positive_int(doc.get("durationMinutes"))
    if duration:
        service["duration_minutes"] = duration
    price = doc.get("price")
    if isinstance(price, (int, float)) and not isinstance(price, bool):
        service["price"] = float(price)
    return service


def normalize_reservation(doc: Dict[str, Any]) -> Reservation:
    """
    Normalize one stored reservation.

    Empty staffId/serviceId strings (the dashboard's "none") become absent.
    A missing status is read as Confirmada, the dashboard's default.
    """
    reservation = Reservation(
        id=str(doc.get("id") or doc.get("_id") or ""),
        client_id=str(doc.get("clientId") or ""),
        date_id=str(doc.get("dateId") or ""),
        time=str(doc.get("time") or ""),
        status=str(doc.get("status") or ReservationStatus.CONFIRMED.value),
    )

    for source, target in (("staffId", "staff_id"), ("serviceId", "service_id"), ("endTime", "end_time"),
                           ("name", "name"), ("staffName", "staff_name")):
        value = optional_str(doc.get(source))
        if value is not None:
            reservation[target] = value

    duration = _positive_int(doc.get("durationMinutes"))
    if duration:
        reservation["duration_minutes"] = duration
    return reservation


def normalize_reservations(docs: List[Dict[str, Any]]) -> List[Reservation]:
    return [normalize_reservation(doc) for doc in docs or []]


# =============================================================================
# PROFILE
# =============================================================================

def normalize_business_profile(doc: Optional[Dict[str, Any]]) -> Optional[BusinessProfile]:
    """
    Normalize a stored business profile document.

    Args:
        doc: Raw profile document, or None when the tenant has none.

    Returns:
        BusinessProfile, or None when doc is None.
    """
    if doc is None:
        return None

    staff = [m for m in (normalize_staff_member(s) for s in doc.get("staff") or [] if isinstance(s, dict)) if m]
    services = [s for s in (normalize_service(d) for d in doc.get("services") or [] if isinstance(d, dict)) if s]

    return BusinessProfile(
        client_id=str(doc.get("clientId") or doc.get("_id") or "unknown"),
        business_name=str(doc.get("businessName") or "Tu negocio"),
        business_hours=normalize_business_hours(doc.get("hours")),
        staff=staff,
        services=services,
    )
