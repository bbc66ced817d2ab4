"""
Sample tenant fixtures for engine testing.

Provides builders for the snake_case contracts consumed by the engine and
a raw camelCase profile document as the dashboard stores it.

Reference dates:
- MONDAY is 2026-03-02 (domain weekday 0)
- SATURDAY/SUNDAY follow the same week
- BEFORE_MONDAY is a `now` safely earlier than every reference date
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)
SATURDAY = date(2026, 3, 7)
SUNDAY = date(2026, 3, 8)
MONDAY_ID = "2026-03-02"

BEFORE_MONDAY = datetime(2026, 3, 1, 8, 0)

CLIENT_ID = "demo-barberia"


def make_business_hours(
    open_time: str = "09:00",
    close_time: str = "18:00",
    slot_minutes: int = 60,
    days: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Business hours contract; days are optional weekday overrides."""
    hours: Dict[str, Any] = {"open": open_time, "close": close_time, "slot_minutes": slot_minutes}
    if days is not None:
        hours["days"] = days
    return hours


def make_staff(
    staff_id: str = "s1",
    name: Optional[str] = None,
    active: bool = True,
    service_ids: Optional[List[str]] = None,
    hours: Optional[Dict[str, Any]] = None,
    use_business_hours: Optional[bool] = None,
    days: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Staff member contract.

    Args:
        staff_id: Staff id.
        name: Display name (defaults to the id upper-cased).
        active: False for an inactive member.
        service_ids: Restrict capability to these services.
        hours: Own default hours.
        use_business_hours: Delegate to the business schedule.
        days: Own per-weekday overrides.
    """
    member: Dict[str, Any] = {"id": staff_id, "name": name or staff_id.upper(), "active": active}
    if service_ids is not None:
        member["service_ids"] = service_ids
    if hours is not None:
        member["hours"] = hours
    if use_business_hours is not None or days is not None:
        member["schedule"] = {
            "use_business_hours": bool(use_business_hours),
            "days": days or [],
        }
    return member


def make_reservation(
    reservation_id: str,
    time: str,
    staff_id: Optional[str] = "s1",
    date_id: str = MONDAY_ID,
    end_time: Optional[str] = None,
    duration_minutes: Optional[int] = None,
    status: str = "Confirmada",
    client_id: str = CLIENT_ID,
) -> Dict[str, Any]:
    """Reservation contract; end_time and duration_minutes are optional."""
    reservation: Dict[str, Any] = {
        "id": reservation_id,
        "client_id": client_id,
        "date_id": date_id,
        "time": time,
        "status": status,
    }
    if staff_id is not None:
        reservation["staff_id"] = staff_id
    if end_time is not None:
        reservation["end_time"] = end_time
    if duration_minutes is not None:
        reservation["duration_minutes"] = duration_minutes
    return reservation


def make_profile_document() -> Dict[str, Any]:
    """
    Raw profile document with stored camelCase keys.

    Business: 09:00-18:00 every 30 min, Saturday 10:00-14:00, Sunday closed.
    Staff: Ana delegates to the business, Luis works 12:00-20:00 on
    weekdays and only does "corte", Marta is inactive.
    """
    return {
        "clientId": CLIENT_ID,
        "businessName": "Barbería Centro",
        "hours": {
            "open": "09:00",
            "close": "18:00",
            "slotMinutes": 30,
            "days": [
                {"day": 5, "open": "10:00", "close": "14:00"},
                {"day": 6, "active": False},
            ],
        },
        "services": [
            {"id": "corte", "name": "Corte", "durationMinutes": 30, "price": 12},
            {"id": "color", "name": "Color", "durationMinutes": 90, "price": 40},
        ],
        "staff": [
            {
                "id": "s-ana",
                "name": "Ana",
                "serviceIds": ["corte", "color"],
                "schedule": {"useBusinessHours": True},
            },
            {
                "id": "s-luis",
                "name": "Luis",
                "serviceIds": ["corte"],
                "hours": {"open": "12:00", "close": "20:00", "daysOfWeek": [0, 1, 2, 3, 4]},
            },
            {"id": "s-marta", "name": "Marta", "status": "inactivo"},
        ],
    }
