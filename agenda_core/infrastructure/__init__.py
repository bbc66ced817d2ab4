"""Infrastructure components for the booking engine.

This module provides swappable infrastructure interfaces:
- ReservationSource: snapshot reads per tenant and date
- ReservationStore: reservation persistence with a uniqueness constraint

Current implementation is in-memory for simplicity.
Future versions can swap to a document store with a unique index.
"""

from agenda_core.infrastructure.reservation_store import (
    ReservationSource,
    ReservationStore,
    get_reservation_store,
    reset_reservation_store,
)

__all__ = [
    "ReservationSource",
    "ReservationStore",
    "get_reservation_store",
    "reset_reservation_store",
]
