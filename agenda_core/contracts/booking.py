"""
Booking Contracts.

Defines the schemas exchanged between the availability engine and the
surrounding booking/configuration layer. Tenant documents arrive from the
document store with camelCase keys; `availability.profile` converts them
into these snake_case contracts at the boundary.

CRITICAL INVARIANTS:
- Times are "HH:MM" strings (24-hour), dates are "YYYY-MM-DD" strings
- Weekdays are Monday=0 ... Sunday=6 everywhere in these contracts
- Configuration entities are read-only to the engine
- Reservations are validated against, never persisted, by the engine
"""

from enum import Enum
from typing import FrozenSet, List, Optional, TypedDict


# =============================================================================
# RESERVATION STATUS
# =============================================================================

class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation document."""
    PENDING = "Pendiente"
    CONFIRMED = "Confirmada"
    CANCELLED = "Cancelada"


# Statuses that occupy a staff member's time
ACTIVE_STATUSES = frozenset([ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value])


# =============================================================================
# HOURS SCHEMAS
# =============================================================================

class Hours(TypedDict):
    """Resolved open window for one entity on one date."""
    open: str          # "09:00"
    close: str         # "18:00"
    slot_minutes: int  # 30, 60, etc.


class DayOverride(TypedDict, total=False):
    """Per-weekday override of the business default hours."""
    day: int       # 0=Monday ... 6=Sunday
    open: str
    close: str
    active: bool   # False means closed that weekday


class BusinessHours(TypedDict, total=False):
    """
    Tenant default weekly schedule.

    Weekdays without a DayOverride use the top-level open/close.
    """
    open: str
    close: str
    slot_minutes: int
    days: List[DayOverride]


# =============================================================================
# STAFF SCHEMAS
# =============================================================================

class StaffHours(TypedDict, total=False):
    """Staff member's own default schedule."""
    open: str
    close: str
    slot_minutes: int
    days_of_week: List[int]  # Monday=0; absent means every weekday


class StaffDaySchedule(TypedDict, total=False):
    """Per-weekday override for one staff member."""
    day: int
    open: str
    close: str
    slot_minutes: int
    active: bool


class StaffSchedule(TypedDict, total=False):
    """Staff scheduling preferences."""
    use_business_hours: bool
    days: List[StaffDaySchedule]


class StaffMember(TypedDict, total=False):
    """
    A bookable staff member.

    Empty or absent service_ids means the member can perform every service.
    """
    id: str
    name: str
    active: bool
    service_ids: List[str]
    hours: StaffHours
    schedule: StaffSchedule


# =============================================================================
# SERVICE AND RESERVATION SCHEMAS
# =============================================================================

class Service(TypedDict, total=False):
    """A bookable service; supplies the default booking duration."""
    id: str
    name: str
    price: float
    duration_minutes: int
    active: bool


class Reservation(TypedDict, total=False):
    """Subset of a reservation document relevant to conflict detection."""
    id: str
    client_id: str
    date_id: str
    time: str
    end_time: str
    duration_minutes: int
    staff_id: str
    service_id: str
    status: str
    name: str
    staff_name: str


class BusinessProfile(TypedDict, total=False):
    """Tenant configuration snapshot consumed by the engine."""
    client_id: str
    business_name: str
    business_hours: BusinessHours
    staff: List[StaffMember]
    services: List[Service]


# =============================================================================
# REQUEST / RESULT SCHEMAS
# =============================================================================

class BookingRequest(TypedDict, total=False):
    """Incoming booking request."""
    client_id: str
    date_id: str
    time: str
    duration_minutes: int
    staff_id: str
    service_id: str
    exclude_id: str  # reservation being edited, ignored for conflicts
    name: str


class ValidationResult(TypedDict, total=False):
    """Outcome of the validator; reason and code present only on rejection."""
    can_book: bool
    reason: str
    code: str


# =============================================================================
# CAPABILITY TAG
# =============================================================================

class Unrestricted:
    """Staff member may perform every service."""

    __slots__ = ()

    def allows(self, service_id: str) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Unrestricted)

    def __hash__(self) -> int:
        return hash("Unrestricted")

    def __repr__(self) -> str:
        return "Unrestricted()"


class RestrictedTo:
    """Staff member may perform only the listed services."""

    __slots__ = ("service_ids",)

    def __init__(self, service_ids: FrozenSet[str]) -> None:
        self.service_ids = frozenset(service_ids)

    def allows(self, service_id: str) -> bool:
        return service_id in self.service_ids

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RestrictedTo) and other.service_ids == self.service_ids

    def __hash__(self) -> int:
        return hash(self.service_ids)

    def __repr__(self) -> str:
        return f"RestrictedTo({sorted(self.service_ids)!r})"


UNRESTRICTED = Unrestricted()


def capability_for(staff: StaffMember) -> "Unrestricted | RestrictedTo":
    """
    Map the stored service_ids list to an explicit capability tag.

    Args:
        staff: Staff member contract.

    Returns:
        UNRESTRICTED when service_ids is empty/absent, RestrictedTo otherwise.
    """
    service_ids = staff.get("service_ids") or []
    if not service_ids:
        return UNRESTRICTED
    return RestrictedTo(frozenset(service_ids))


def is_cancelled(reservation: Reservation) -> bool:
    """True when the reservation no longer occupies time."""
    return reservation.get("status") == ReservationStatus.CANCELLED.value


def optional_str(value: Optional[object]) -> Optional[str]:
    """Normalize empty strings (as stored by the dashboard) to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
