"""
Service and reservation duration helpers.

Both the conflict check (read path) and reservation payload preparation
(write path) derive durations here, so they always agree on the default.
"""

import re
from typing import Any, Dict, List, Optional

from agenda_core.contracts.booking import (
    Reservation,
    Service,
    StaffMember,
    capability_for,
)
from availability.config import DEFAULT_DURATION_MINUTES
from availability.time_arithmetic import add_minutes_to_time, time_to_minutes


DEFAULT_SERVICE_DURATION = DEFAULT_DURATION_MINUTES


# =============================================================================
# SERVICE DURATIONS
# =============================================================================

def get_service_duration(service: Optional[Service], default: int = DEFAULT_SERVICE_DURATION) -> int:
    """Service duration in minutes, or the default when the service has none."""
    if not service:
        return default
    duration = service.get("duration_minutes")
    if isinstance(duration, int) and not isinstance(duration, bool) and duration > 0:
        return duration
    return default


def find_service(services: Optional[List[Service]], service_id: Optional[str]) -> Optional[Service]:
    """Look up a service by id in the tenant catalog."""
    if not service_id:
        return None
    for service in services or []:
        if service.get("id") == service_id:
            return service
    return None


def calculate_end_time(start_time: str, service: Optional[Service]) -> str:
    """End time of a booking of the given service."""
    return add_minutes_to_time(start_time, get_service_duration(service))


# =============================================================================
# RESERVATION DURATIONS
# =============================================================================

def get_reservation_duration(reservation: Reservation, default: int = DEFAULT_SERVICE_DURATION) -> int:
    """
    Duration of a reservation in minutes.

    Priority: explicit duration_minutes > end_time - time > default.
    """
    duration = reservation.get("duration_minutes")
    if isinstance(duration, int) and not isinstance(duration, bool) and duration > 0:
        return duration

    start = reservation.get("time")
    end = reservation.get("end_time")
    if start and end:
        delta = time_to_minutes(end) - time_to_minutes(start)
        if delta > 0:
            return delta

    return default


def get_reservation_end_time(reservation: Reservation, default: int = DEFAULT_SERVICE_DURATION) -> str:
    """
    End time of a reservation.

    The explicit end_time wins; otherwise it is derived from the duration,
    falling back to the default duration.
    """
    end = reservation.get("end_time")
    if end:
        return end
    return add_minutes_to_time(reservation["time"], get_reservation_duration(reservation, default))


def prepare_reservation_payload(
    start_time: str,
    service: Optional[Service],
    override_duration: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Time fields to store on a new reservation document.

    Args:
        start_time: "HH:MM" start.
        service: Booked service (may be None).
        override_duration: Explicit duration that beats the service's.

    Returns:
        Dict with time, end_time and duration_minutes.
    """
    duration = override_duration if override_duration else get_service_duration(service)
    return {
        "time": start_time,
        "end_time": add_minutes_to_time(start_time, duration),
        "duration_minutes": duration,
    }


def is_valid_time_range(start_time: str, end_time: str) -> bool:
    """True when end is strictly after start."""
    return time_to_minutes(end_time) > time_to_minutes(start_time)


def get_slot_span(duration_minutes: int, slot_minutes: int) -> int:
    """Number of grid slots a booking of this duration occupies."""
    if slot_minutes <= 0:
        raise ValueError(f"slot_minutes must be positive, got {slot_minutes}")
    return -(-duration_minutes // slot_minutes)


# =============================================================================
# DURATION TEXT
# =============================================================================

_HOURS_MINUTES = re.compile(r"(\d+)\s*h(?:\s*(\d+)\s*m)?")
_MINUTES_ONLY = re.compile(r"^(\d+)\s*m$")
_DECIMAL_HOURS = re.compile(r"^(\d+\.?\d*)\s*h$")
_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_duration_to_minutes(text: str) -> Optional[int]:
    """
    Parse a human duration into minutes.

    Accepts "1h 30m", "2h", "90m", "1.5h" and plain numbers (minutes).

    Returns:
        Minutes, or None when the text is not a duration.
    """
    normalized = (text or "").lower().strip()

    decimal = _DECIMAL_HOURS.match(normalized)
    if decimal and "." in decimal.group(1):
        return round(float(decimal.group(1)) * 60)

    hours_minutes = _HOURS_MINUTES.search(normalized)
    if hours_minutes:
        hours = int(hours_minutes.group(1))
        minutes = int(hours_minutes.group(2)) if hours_minutes.group(2) else 0
        return hours * 60 + minutes

    minutes_only = _MINUTES_ONLY.match(normalized)
    if minutes_only:
        return int(minutes_only.group(1))

    plain = _LEADING_INT.match(normalized)
    if plain:
        return int(plain.group(1))

    return None


def format_duration(minutes: int) -> str:
    """Format minutes as "45 min", "2h" or "1h 30m"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_time_range(start_time: str, end_time: str) -> str:
    return f"{start_time} - {end_time}"


# =============================================================================
# STAFF CAPABILITY
# =============================================================================

def is_staff_capable(staff: StaffMember, service_id: str) -> bool:
    """True when the staff member can perform the service."""
    return capability_for(staff).allows(service_id)


def get_capable_staff(staff: List[StaffMember], service_id: str) -> List[StaffMember]:
    """Active staff members that can perform the service, roster order."""
    return [
        member for member in staff
        if member.get("active") is not False and is_staff_capable(member, service_id)
    ]
