"""In-memory reservation store with a storage-level uniqueness constraint.

This module provides the reference implementation of the storage contract
the booking service relies on:
- snapshot reads per (client_id, date_id)
- insert guarded by a lane per (client_id, staff_id, date_id) holding the
  claimed [start, end) intervals
- compare_and_set as the primitive that swaps a lane
- cancel/reschedule releasing or moving claims

Reservations without a staff member share one tenant-level lane per date,
so unassigned bookings cannot overlap each other either.

The validator's conflict check is the fast path; these claims are the
authoritative guard against two concurrent writers booking the same staff
member. Current implementation is an in-memory dict behind a lock.
"""

import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from agenda_core.contracts.booking import Reservation, ReservationStatus, is_cancelled
from agenda_core.errors import StorageConflictError
from agenda_core.logger import get_logger
from availability.config import DEFAULT_DURATION_MINUTES
from availability.conflict_detector import is_overlapping
from availability.service_catalog import get_reservation_end_time
from availability.time_arithmetic import time_to_minutes

logger = get_logger(__name__)

# Lane name used for reservations without a staff member
UNASSIGNED_LANE = "-"

# (reservation_id, start_minutes, end_minutes)
Claim = Tuple[str, int, int]


class ReservationSource(ABC):
    """Snapshot reads of a tenant's reservations on one date."""

    @abstractmethod
    def list_for_date(self, client_id: str, date_id: str) -> List[Reservation]:
        pass


class ReservationStore(ReservationSource):
    """
    In-memory reservation store.

    Supports:
    - Snapshot reads for a tenant and date
    - Atomic insert with exact half-open interval claims
    - Cancel and reschedule
    - Compare-and-set on lanes

    All mutating operations hold a single lock, so concurrent request
    handlers observe them as serialized.

    Usage:
        store = ReservationStore()
        saved = store.insert({"client_id": "c1", "staff_id": "s1", ...})
        store.list_for_date("c1", "2026-03-02")
        store.cancel(saved["id"])
    """

    def __init__(self, default_duration: int = DEFAULT_DURATION_MINUTES) -> None:
        """Initialize empty store."""
        if default_duration <= 0:
            raise ValueError(f"default_duration must be positive, got {default_duration}")
        self.default_duration = default_duration
        self._lanes: Dict[str, Tuple[Claim, ...]] = {}
        self._reservations: Dict[str, Reservation] = {}
        self._lock = threading.RLock()
        logger.debug("ReservationStore initialized")

    # -------------------------------------------------------------------------
    # Claim primitives
    # -------------------------------------------------------------------------

    def compare_and_set(self, key: str, expected: Any, new_value: Any) -> bool:
        """
        Atomically set a lane only if its current value matches expected.

        Args:
            key: Lane key
            expected: Expected current value (None if key should not exist)
            new_value: New value; None removes the key

        Returns:
            True if update succeeded, False if current value != expected
        """
        with self._lock:
            current = self._lanes.get(key)
            if current != expected:
                logger.debug(f"CAS failed for {key}: expected={expected}, current={current}")
                return False
            if new_value is None:
                self._lanes.pop(key, None)
            else:
                self._lanes[key] = new_value
            return True

    def lane_key(self, reservation: Reservation) -> Optional[str]:
        """
        Lane a reservation claims time in; None for cancelled reservations.

        Unassigned reservations use the tenant-level UNASSIGNED_LANE.
        """
        if is_cancelled(reservation):
            return None
        staff_id = reservation.get("staff_id") or UNASSIGNED_LANE
        return f"{reservation.get('client_id', '')}:{staff_id}:{reservation.get('date_id', '')}"

    def interval(self, reservation: Reservation) -> Tuple[int, int]:
        """[start, end) of a reservation in minute offsets."""
        start = time_to_minutes(reservation["time"])
        end = time_to_minutes(get_reservation_end_time(reservation, self.default_duration))
        return start, end

    def claims(self, key: str) -> Tuple[Claim, ...]:
        with self._lock:
            return self._lanes.get(key, ())

    def _claim(self, reservation: Reservation, owner: str) -> Optional[Claim]:
        """
        Add the reservation's interval to its lane.

        Returns:
            None on success, or the claim it overlaps with.
        """
        key = self.lane_key(reservation)
        if key is None:
            return None
        start, end = self.interval(reservation)
        if end <= start:
            return None

        with self._lock:
            current = self._lanes.get(key)
            for claim in current or ():
                if claim[0] != owner and is_overlapping(start, end, claim[1], claim[2]):
                    return claim
            claimed = (current or ()) + ((owner, start, end),)
            if not self.compare_and_set(key, current, claimed):
                return (key, start, end)
        return None

    def _release(self, reservation: Reservation, owner: str) -> None:
        key = self.lane_key(reservation)
        if key is None:
            return
        with self._lock:
            current = self._lanes.get(key)
            if current is None:
                return
            remaining = tuple(claim for claim in current if claim[0] != owner)
            self.compare_and_set(key, current, remaining or None)

    # -------------------------------------------------------------------------
    # Reservation operations
    # -------------------------------------------------------------------------

    def insert(self, reservation: Reservation) -> Reservation:
        """
        Store a new reservation, claiming its interval.

        Args:
            reservation: Reservation contract; an id is assigned if missing.

        Returns:
            Stored copy with id.

        Raises:
            StorageConflictError: If another reservation in the same lane overlaps.
        """
        saved = dict(reservation)
        if not saved.get("id"):
            saved["id"] = uuid.uuid4().hex

        with self._lock:
            contested = self._claim(saved, saved["id"])
            if contested is not None:
                logger.warning(
                    f"Insert rejected by uniqueness constraint on {self.lane_key(saved)}: "
                    f"overlaps reservation {contested[0]}"
                )
                raise StorageConflictError()
            self._reservations[saved["id"]] = saved

        logger.debug(f"Reservation stored: {saved['id']}")
        return dict(saved)

    def cancel(self, reservation_id: str) -> bool:
        """
        Mark a reservation Cancelada and release its claim.

        Returns:
            True if the reservation existed, False otherwise
        """
        with self._lock:
            current = self._reservations.get(reservation_id)
            if current is None:
                return False
            self._release(current, reservation_id)
            current["status"] = ReservationStatus.CANCELLED.value
        logger.debug(f"Reservation cancelled: {reservation_id}")
        return True

    def update(self, reservation_id: str, changes: Dict[str, Any]) -> Reservation:
        """
        Apply changes (e.g. a reschedule), moving the claim atomically.

        Raises:
            KeyError: If the reservation does not exist
            StorageConflictError: If the new interval overlaps another reservation
        """
        with self._lock:
            current = self._reservations.get(reservation_id)
            if current is None:
                raise KeyError(f"Reservation not found: {reservation_id}")

            updated = dict(current)
            updated.update(changes)
            updated["id"] = reservation_id

            self._release(current, reservation_id)
            contested = self._claim(updated, reservation_id)
            if contested is not None:
                self._claim(current, reservation_id)
                logger.warning(
                    f"Update of {reservation_id} rejected by uniqueness constraint on "
                    f"{self.lane_key(updated)}: overlaps reservation {contested[0]}"
                )
                raise StorageConflictError()

            self._reservations[reservation_id] = updated
        return dict(updated)

    def get(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            current = self._reservations.get(reservation_id)
            return dict(current) if current is not None else None

    def list_for_date(self, client_id: str, date_id: str) -> List[Reservation]:
        """
        Point-in-time snapshot of a tenant's reservations on a date.

        Returns:
            Copies of the matching reservations, sorted by time
        """
        with self._lock:
            matching = [
                dict(r) for r in self._reservations.values()
                if r.get("client_id") == client_id and r.get("date_id") == date_id
            ]
        return sorted(matching, key=lambda r: time_to_minutes(r["time"]))

    def clear(self) -> None:
        """Clear all reservations and claims."""
        with self._lock:
            self._lanes = {}
            self._reservations = {}
        logger.debug("ReservationStore cleared")

    def size(self) -> int:
        """Get number of stored reservations (any status)."""
        with self._lock:
            return len(self._reservations)


# Singleton instance for global access
_reservation_store: Optional[ReservationStore] = None


def get_reservation_store() -> ReservationStore:
    """
    Get the global ReservationStore instance.

    Returns:
        Singleton ReservationStore instance
    """
    global _reservation_store
    if _reservation_store is None:
        _reservation_store = ReservationStore()
    return _reservation_store


def reset_reservation_store() -> None:
    """Reset the global ReservationStore instance (for testing)."""
    global _reservation_store
    _reservation_store = None
