"""
Booking error taxonomy.

Every rejection carries a machine code and a human-readable reason. The
code strings are part of the contract with the existing dashboard client
and must not change.

Hierarchy:
    BookingError
    ├── ValidationError      (HTTP 400, caller corrects input)
    │   ├── FormatError
    │   ├── PastTimeError
    │   ├── StaffInactiveError
    │   ├── CapabilityError
    │   ├── ClosedError
    │   ├── OutsideHoursError
    │   ├── ConfigurationAbsentError
    │   └── ReservationCancelledError
    └── ConflictError        (HTTP 409, caller picks another slot/staff)
        ├── StaffConflictError
        ├── NoStaffAvailableError
        └── StorageConflictError
"""

from typing import Optional


# =============================================================================
# ERROR CODES
# =============================================================================

PAST_TIME = "PAST_TIME"
OUTSIDE_HOURS = "OUTSIDE_HOURS"
STAFF_CONFLICT = "STAFF_CONFLICT"
INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
STAFF_INACTIVE = "STAFF_INACTIVE"
SERVICE_NOT_OFFERED = "SERVICE_NOT_OFFERED"
CLOSED = "CLOSED"
CONFIGURATION_ABSENT = "CONFIGURATION_ABSENT"
NO_STAFF_AVAILABLE = "NO_STAFF_AVAILABLE"
VALIDATION_FAILED = "VALIDATION_FAILED"
RESERVATION_CANCELLED = "RESERVATION_CANCELLED"


class BookingError(Exception):
    """Base class for every booking rejection."""

    code: str = VALIDATION_FAILED
    http_status: int = 400
    default_reason: str = "No se pudo validar la reserva"

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason or self.default_reason
        super().__init__(self.reason)

    def to_dict(self) -> dict[str, object]:
        """Serialize as the rejection half of a ValidationResult."""
        return {"can_book": False, "reason": self.reason, "code": self.code}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, reason={self.reason!r})"


# =============================================================================
# VALIDATION ERRORS (HTTP 400)
# =============================================================================

class ValidationError(BookingError):
    """Input-level rejection; recoverable by correcting the request."""


class FormatError(ValidationError, ValueError):
    """Malformed "HH:MM" time or "YYYY-MM-DD" date string."""
    code = INVALID_TIME_FORMAT
    default_reason = "Formato de hora inválido"


class PastTimeError(ValidationError):
    code = PAST_TIME
    default_reason = "No se puede reservar en un horario pasado"


class StaffInactiveError(ValidationError):
    code = STAFF_INACTIVE
    default_reason = "El empleado no está activo"


class CapabilityError(ValidationError):
    code = SERVICE_NOT_OFFERED
    default_reason = "El empleado no puede realizar este servicio"


class ClosedError(ValidationError):
    code = CLOSED
    default_reason = "Cerrado este día"


class OutsideHoursError(ValidationError):
    code = OUTSIDE_HOURS
    default_reason = "Fuera del horario de atención"


class ConfigurationAbsentError(ValidationError):
    """Raised only in strict mode; the default policy fails open."""
    code = CONFIGURATION_ABSENT
    default_reason = "El negocio no tiene configuración de horarios"


class ReservationCancelledError(ValidationError):
    """Cancelled reservations cannot be rescheduled; book a new one instead."""
    code = RESERVATION_CANCELLED
    default_reason = "La reserva está cancelada"


# =============================================================================
# CONFLICT ERRORS (HTTP 409)
# =============================================================================

class ConflictError(BookingError):
    """Slot is taken; recoverable by choosing another slot or staff member."""
    http_status = 409


class StaffConflictError(ConflictError):
    code = STAFF_CONFLICT
    default_reason = "El empleado ya tiene una reserva en ese horario"


class NoStaffAvailableError(ConflictError):
    code = NO_STAFF_AVAILABLE
    default_reason = "No hay empleados disponibles en ese horario"


class StorageConflictError(ConflictError):
    """A concurrent writer claimed the slot between validation and insert."""
    code = STAFF_CONFLICT
    default_reason = "Ya existe una reserva para ese horario"


def http_status_for(code: str) -> int:
    """
    Map an error code to the HTTP status surfaced by the booking API.

    Args:
        code: Error code string.

    Returns:
        409 for conflict codes, 400 for everything else.
    """
    if code in (STAFF_CONFLICT, NO_STAFF_AVAILABLE):
        return 409
    return 400
