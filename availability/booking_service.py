"""
Booking Service.

Wraps the pure engine with the read -> validate -> write boundary:

    ProfileSource.load_profile ─┐
                                ├─> validate_booking (advisory fast path)
    ReservationStore.list_for_date ┘            │
                                                ▼
                                  ReservationStore.insert (authoritative)

Two concurrent requests can both pass validation before either writes.
The store's interval claims reject the losing writer, and the outcome tags
which layer rejected the request.

CRITICAL INVARIANTS:
- The validator never writes; the store never validates hours
- A failed configuration lookup fails open unless strict mode is on
- RejectedByStore is reported as STAFF_CONFLICT (HTTP 409)
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from agenda_core.contracts.booking import (
    BookingRequest,
    BusinessProfile,
    Reservation,
    ReservationStatus,
    ValidationResult,
    is_cancelled,
)
from agenda_core.errors import (
    NoStaffAvailableError,
    ReservationCancelledError,
    StorageConflictError,
    http_status_for,
)
from agenda_core.infrastructure.reservation_store import ReservationStore
from agenda_core.logger import get_logger
from availability.booking_validator import (
    BookingContext,
    BookingValidator,
    NowSource,
    request_duration,
    validate_booking,
)
from availability.config import EngineSettings
from availability.profile import normalize_business_profile
from availability.service_catalog import find_service
from availability.staff_selector import auto_select_staff
from availability.time_arithmetic import add_minutes_to_time

logger = get_logger(__name__)


# =============================================================================
# COLLABORATORS
# =============================================================================

class ProfileSource(ABC):
    """Read-only access to tenant configuration documents."""

    @abstractmethod
    def load_profile(self, client_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the raw profile document of a tenant.

        Returns:
            Raw document, or None when the tenant has no profile.
        """
        pass


class StaticProfileSource(ProfileSource):
    """ProfileSource over raw documents held in memory, keyed by clientId."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.documents = dict(documents or {})

    def load_profile(self, client_id: str) -> Optional[Dict[str, Any]]:
        return self.documents.get(client_id)


# =============================================================================
# OUTCOME
# =============================================================================

class OutcomeKind(str, Enum):
    """Which layer decided the booking."""
    ACCEPTED = "ACCEPTED"
    REJECTED_BY_VALIDATOR = "REJECTED_BY_VALIDATOR"
    REJECTED_BY_STORE = "REJECTED_BY_STORE"


class BookingOutcome:
    """Tagged result of a booking attempt."""

    __slots__ = ("kind", "reservation", "result")

    def __init__(
        self,
        kind: OutcomeKind,
        result: ValidationResult,
        reservation: Optional[Reservation] = None,
    ) -> None:
        self.kind = kind
        self.result = result
        self.reservation = reservation

    @classmethod
    def accepted(cls, reservation: Reservation) -> "BookingOutcome":
        return cls(OutcomeKind.ACCEPTED, ValidationResult(can_book=True), reservation)

    @classmethod
    def rejected_by_validator(cls, result: ValidationResult) -> "BookingOutcome":
        return cls(OutcomeKind.REJECTED_BY_VALIDATOR, result)

    @classmethod
    def rejected_by_store(cls, error: StorageConflictError) -> "BookingOutcome":
        return cls(OutcomeKind.REJECTED_BY_STORE, ValidationResult(**error.to_dict()))

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.ACCEPTED

    @property
    def code(self) -> Optional[str]:
        return self.result.get("code")

    def to_response(self) -> Tuple[Dict[str, Any], int]:
        """
        Payload and HTTP status in the shape the dashboard client reads.

        Returns:
            ({"ok": True, "data": reservation}, 200) or
            ({"ok": False, "error": reason, "code": code}, 400/409)
        """
        if self.ok:
            return {"ok": True, "data": self.reservation}, 200
        code = self.code or "VALIDATION_FAILED"
        return {"ok": False, "error": self.result.get("reason"), "code": code}, http_status_for(code)

    def __repr__(self) -> str:
        return f"BookingOutcome(kind={self.kind.value}, code={self.code!r})"


# =============================================================================
# SERVICE
# =============================================================================

class BookingService:
    """
    Books, reschedules and cancels reservations for any tenant.

    Stateless apart from its collaborators; safe to share between request
    handlers as long as the store is.
    """

    def __init__(
        self,
        profiles: ProfileSource,
        store: ReservationStore,
        settings: Optional[EngineSettings] = None,
        now: NowSource = None,
        validator: Optional[BookingValidator] = None,
    ) -> None:
        self.profiles = profiles
        self.store = store
        self.settings = settings or EngineSettings()
        self.now = now
        self.validator = validator

    def load_profile(self, client_id: str) -> Optional[BusinessProfile]:
        """
        Fetch and normalize the tenant profile.

        Lookup failures are logged and treated as "no profile", which the
        validator turns into fail-open (or a rejection in strict mode).
        """
        try:
            document = self.profiles.load_profile(client_id)
        except Exception as e:
            logger.exception(f"Profile lookup failed for client {client_id}: {e}")
            return None

        if document is None:
            logger.warning(f"No profile on record for client {client_id}")
            return None
        return normalize_business_profile(document)

    def load_context(self, client_id: str, date_id: str) -> BookingContext:
        """Point-in-time snapshot of configuration and reservations."""
        profile = self.load_profile(client_id)
        return BookingContext(
            business_hours=profile.get("business_hours") if profile else None,
            staff=profile.get("staff") if profile else [],
            services=profile.get("services") if profile else [],
            reservations=self.store.list_for_date(client_id, date_id),
            now=self.now,
            settings=self.settings,
            client_id=client_id,
        )

    def check(self, request: BookingRequest) -> ValidationResult:
        """Validate a request without writing anything."""
        context = self.load_context(request.get("client_id", ""), request.get("date_id", ""))
        return validate_booking(request, context, self.validator)

    def _assign_staff(self, request: BookingRequest, context: BookingContext) -> "BookingRequest | ValidationResult":
        """
        Fill in staff_id for requests without one when the tenant has staff.

        Returns:
            The (possibly updated) request, or a rejection.
        """
        if request.get("staff_id") or not context.staff:
            return request

        business_level = validate_booking(request, context, self.validator)
        if not business_level.get("can_book"):
            return business_level

        selected = auto_select_staff(
            context.staff,
            request["date_id"],
            request["time"],
            request_duration(request, context),
            context.business_hours,
            context.reservations,
            service_id=request.get("service_id") or None,
            now=context.now,
            settings=context.settings,
        )
        if selected is None:
            return ValidationResult(**NoStaffAvailableError().to_dict())

        assigned = dict(request)
        assigned["staff_id"] = selected["id"]
        return assigned

    def _build_reservation(self, request: BookingRequest, context: BookingContext) -> Reservation:
        duration = request_duration(request, context)
        reservation = Reservation(
            client_id=request.get("client_id", ""),
            date_id=request["date_id"],
            time=request["time"],
            end_time=add_minutes_to_time(request["time"], duration),
            duration_minutes=duration,
            status=ReservationStatus.PENDING.value,
        )
        staff = context.find_staff(request.get("staff_id"))
        if request.get("staff_id"):
            reservation["staff_id"] = request["staff_id"]
        if staff and staff.get("name"):
            reservation["staff_name"] = staff["name"]
        service = find_service(context.services, request.get("service_id"))
        if request.get("service_id"):
            reservation["service_id"] = request["service_id"]
        if request.get("name"):
            reservation["name"] = request["name"]
        if service is None and request.get("service_id"):
            logger.debug(f"Service {request['service_id']} not in catalog, booking without it")
        return reservation

    def book(self, request: BookingRequest) -> BookingOutcome:
        """
        Validate and store a new reservation.

        Args:
            request: Booking request; staff_id optional (auto-assigned).

        Returns:
            BookingOutcome tagged with the deciding layer.
        """
        client_id = request.get("client_id", "")
        context = self.load_context(client_id, request.get("date_id", ""))

        assigned = self._assign_staff(request, context)
        if "can_book" in assigned:
            return BookingOutcome.rejected_by_validator(assigned)

        result = validate_booking(assigned, context, self.validator)
        if not result.get("can_book"):
            return BookingOutcome.rejected_by_validator(result)

        try:
            saved = self.store.insert(self._build_reservation(assigned, context))
        except StorageConflictError as e:
            logger.warning(
                f"Concurrent booking detected for client {client_id} "
                f"staff {assigned.get('staff_id')} at {assigned.get('date_id')} {assigned.get('time')}"
            )
            return BookingOutcome.rejected_by_store(e)

        logger.info(
            f"Reservation {saved['id']} booked for client {client_id}: "
            f"{saved['date_id']} {saved['time']}-{saved['end_time']} staff={saved.get('staff_id') or '-'}"
        )
        return BookingOutcome.accepted(saved)

    def reschedule(
        self,
        reservation_id: str,
        date_id: str,
        time: str,
        duration_minutes: Optional[int] = None,
        staff_id: Optional[str] = None,
    ) -> BookingOutcome:
        """
        Move an existing reservation, ignoring it in the conflict check.

        Cancelled reservations are rejected with RESERVATION_CANCELLED.

        Raises:
            KeyError: If the reservation does not exist.
        """
        current = self.store.get(reservation_id)
        if current is None:
            raise KeyError(f"Reservation not found: {reservation_id}")
        if is_cancelled(current):
            logger.info(f"Reschedule of cancelled reservation {reservation_id} rejected")
            return BookingOutcome.rejected_by_validator(
                ValidationResult(**ReservationCancelledError().to_dict())
            )

        request = BookingRequest(
            client_id=current.get("client_id", ""),
            date_id=date_id,
            time=time,
            duration_minutes=duration_minutes or current.get("duration_minutes") or 0,
            exclude_id=reservation_id,
        )
        if staff_id or current.get("staff_id"):
            request["staff_id"] = staff_id or current["staff_id"]
        if current.get("service_id"):
            request["service_id"] = current["service_id"]

        context = self.load_context(request["client_id"], date_id)
        result = validate_booking(request, context, self.validator)
        if not result.get("can_book"):
            return BookingOutcome.rejected_by_validator(result)

        duration = request_duration(request, context)
        changes = {
            "date_id": date_id,
            "time": time,
            "end_time": add_minutes_to_time(time, duration),
            "duration_minutes": duration,
        }
        if request.get("staff_id"):
            changes["staff_id"] = request["staff_id"]

        try:
            saved = self.store.update(reservation_id, changes)
        except StorageConflictError as e:
            return BookingOutcome.rejected_by_store(e)

        logger.info(f"Reservation {reservation_id} moved to {date_id} {time}")
        return BookingOutcome.accepted(saved)

    def cancel(self, reservation_id: str) -> bool:
        """Cancel a reservation; cancelled reservations never conflict."""
        cancelled = self.store.cancel(reservation_id)
        if cancelled:
            logger.info(f"Reservation {reservation_id} cancelled")
        return cancelled
