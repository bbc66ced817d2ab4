"""
Booking checks.

Each check inspects the candidate booking and either returns additions to
the candidate context or raises a BookingError. BookingValidator runs them
in a fixed order and the first failure decides the reported reason.

Order:
    PastTimeCheck -> StaffActiveCheck -> CapabilityCheck
    -> ScheduleCheck -> InHoursCheck -> ConflictCheck
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Dict, List

from agenda_core.contracts.booking import capability_for
from agenda_core.errors import (
    CapabilityError,
    ClosedError,
    ConfigurationAbsentError,
    OutsideHoursError,
    PastTimeError,
    StaffConflictError,
    StaffInactiveError,
)
from agenda_core.logger import get_logger
from availability.conflict_detector import find_conflicts
from availability.schedule_resolver import resolve_effective_hours
from availability.service_catalog import get_reservation_end_time
from availability.time_arithmetic import combine, time_to_minutes

logger = get_logger(__name__)


class BookingCheck(ABC):
    """
    Abstract base class for one step of booking validation.

    Checks receive the accumulated candidate context and return a dict
    merged into it for later checks.
    """

    def __init__(self, name: str) -> None:
        """
        Initialize the check.

        Args:
            name: Identifier used in logs.
        """
        self.name = name

    @abstractmethod
    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute the check.

        Args:
            candidate: Candidate booking context.

        Returns:
            Dict of values to merge into the candidate context.

        Raises:
            BookingError: If the booking must be rejected.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class PastTimeCheck(BookingCheck):
    """Reject starts earlier than now minus the grace buffer."""

    def __init__(self) -> None:
        super().__init__(name="PastTimeCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        now = candidate["now"]
        grace = timedelta(minutes=candidate["settings"].past_grace_minutes)
        requested = combine(candidate["day"], candidate["start_time"])

        if requested < now - grace:
            raise PastTimeError(
                f"No se puede reservar en un horario pasado "
                f"({candidate['date_id']} {candidate['start_time']})"
            )
        return {}


class StaffActiveCheck(BookingCheck):
    def __init__(self) -> None:
        super().__init__(name="StaffActiveCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        staff = candidate.get("staff")
        if staff is not None and staff.get("active") is False:
            raise StaffInactiveError()
        return {}


class CapabilityCheck(BookingCheck):
    def __init__(self) -> None:
        super().__init__(name="CapabilityCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        staff = candidate.get("staff")
        service_id = candidate.get("service_id")
        if staff is None or not service_id:
            return {}

        capability = capability_for(staff)
        if not capability.allows(service_id):
            raise CapabilityError()
        return {"capability": capability}


class ScheduleCheck(BookingCheck):
    """
    Resolve the effective hours of the target entity.

    Without a business profile the engine fails open (hours stay None and
    InHoursCheck is skipped) unless strict mode is on.
    """

    def __init__(self) -> None:
        super().__init__(name="ScheduleCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        business_hours = candidate.get("business_hours")
        staff = candidate.get("staff")
        hours = resolve_effective_hours(business_hours, candidate["day"], staff)

        if hours is not None:
            return {"hours": hours}

        if business_hours is None:
            if candidate["settings"].strict_mode:
                raise ConfigurationAbsentError()
            logger.warning(
                f"No business hours on record for client "
                f"{candidate.get('client_id') or '(unknown)'}: failing open"
            )
            return {"hours": None}

        if staff is not None:
            raise ClosedError("El empleado no trabaja este día")
        raise ClosedError()


class InHoursCheck(BookingCheck):
    """The whole [start, end) must fit inside [open, close]."""

    def __init__(self) -> None:
        super().__init__(name="InHoursCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        hours = candidate.get("hours")
        if hours is None:
            return {}

        start = time_to_minutes(candidate["start_time"])
        end = time_to_minutes(candidate["end_time"])
        if start < time_to_minutes(hours["open"]) or end > time_to_minutes(hours["close"]):
            raise OutsideHoursError(
                f"Fuera del horario de atención ({hours['open']} - {hours['close']})"
            )
        return {}


class ConflictCheck(BookingCheck):
    """Reject when the staff member already has an overlapping reservation."""

    def __init__(self) -> None:
        super().__init__(name="ConflictCheck")

    def run(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        staff_id = candidate.get("staff_id")
        if not staff_id:
            return {}

        default_duration = candidate["settings"].default_duration_minutes
        conflicts = find_conflicts(
            staff_id,
            candidate["date_id"],
            candidate["start_time"],
            candidate["end_time"],
            candidate.get("reservations") or [],
            exclude_id=candidate.get("exclude_id"),
            default_duration=default_duration,
        )
        if conflicts:
            first = conflicts[0]
            raise StaffConflictError(
                f"El empleado ya tiene una reserva en ese horario "
                f"({first['time']} - {get_reservation_end_time(first, default_duration)})"
            )
        return {}


def default_checks() -> List[BookingCheck]:
    """The checks in their required order."""
    return [
        PastTimeCheck(),
        StaffActiveCheck(),
        CapabilityCheck(),
        ScheduleCheck(),
        InHoursCheck(),
        ConflictCheck(),
    ]
