"""Tests for the reservation store.

These tests validate:
- compare_and_set (CAS) semantics on lanes
- Exact interval claims reject overlapping inserts for the same staff member
- Cancel releases claims, update moves them atomically
- Concurrent inserts for the same slot admit exactly one writer
"""

import threading

import pytest

from agenda_core.errors import STAFF_CONFLICT, StorageConflictError
from agenda_core.infrastructure import (
    ReservationSource,
    ReservationStore,
    get_reservation_store,
    reset_reservation_store,
)
from fixtures import MONDAY_ID, make_reservation


@pytest.fixture
def store():
    return ReservationStore(default_duration=60)


class TestCompareAndSet:
    """CAS primitive."""

    def test_cas_on_missing_key(self, store):
        assert store.compare_and_set("k", None, "owner") is True
        assert store.compare_and_set("k", None, "other") is False

    def test_cas_release(self, store):
        store.compare_and_set("k", None, "owner")
        assert store.compare_and_set("k", "other", None) is False
        assert store.compare_and_set("k", "owner", None) is True
        assert store.compare_and_set("k", None, "other") is True


class TestLanes:
    """Lane keys and claimed intervals."""

    def test_lane_per_staff_and_date(self, store):
        assert store.lane_key(make_reservation("r1", "10:02")) == "demo-barberia:s1:2026-03-02"

    def test_unassigned_share_tenant_lane(self, store):
        assert store.lane_key(make_reservation("r1", "10:00", staff_id=None)) == "demo-barberia:-:2026-03-02"

    def test_cancelled_claims_nothing(self, store):
        assert store.lane_key(make_reservation("r1", "10:00", status="Cancelada")) is None
        store.insert(make_reservation("r1", "10:00", status="Cancelada"))
        assert store.claims("demo-barberia:s1:2026-03-02") == ()

    def test_interval_is_exact(self, store):
        assert store.interval(make_reservation("r1", "10:02", end_time="10:13")) == (602, 613)

    def test_default_duration_applies(self, store):
        assert store.interval(make_reservation("r1", "10:00")) == (600, 660)

    def test_insert_records_claim(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="10:30"))
        assert store.claims("demo-barberia:s1:2026-03-02") == (("r1", 600, 630),)

    def test_invalid_default_duration(self):
        with pytest.raises(ValueError):
            ReservationStore(default_duration=0)


class TestInsert:
    """Uniqueness constraint on insert."""

    def test_insert_assigns_id_and_returns_copy(self, store):
        reservation = make_reservation("", "10:00", end_time="11:00")
        saved = store.insert(reservation)
        assert saved["id"]
        assert reservation["id"] == ""
        assert store.get(saved["id"]) == saved

    def test_overlapping_insert_rejected(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        with pytest.raises(StorageConflictError) as exc_info:
            store.insert(make_reservation("r2", "10:30", end_time="11:30"))
        assert exc_info.value.code == STAFF_CONFLICT
        assert exc_info.value.http_status == 409
        assert store.size() == 1

    def test_failed_insert_leaves_lane_unchanged(self, store):
        store.insert(make_reservation("r1", "10:30", end_time="11:00"))
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r2", "10:00", end_time="11:00"))
        # a rejected insert leaves nothing behind in the lane
        store.insert(make_reservation("r3", "10:00", end_time="10:30"))

    def test_back_to_back_allowed(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        store.insert(make_reservation("r2", "11:00", end_time="12:00"))
        assert store.size() == 2

    def test_other_staff_or_tenant_allowed(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        store.insert(make_reservation("r2", "10:00", end_time="11:00", staff_id="s2"))
        store.insert(make_reservation("r3", "10:00", end_time="11:00", client_id="otro"))
        assert store.size() == 3

    def test_touching_intervals_off_five_minute_grid(self, store):
        store.insert(make_reservation("r1", "10:00", duration_minutes=32))
        store.insert(make_reservation("r2", "10:32", duration_minutes=28))
        assert store.size() == 2

    def test_one_minute_overlap_rejected(self, store):
        store.insert(make_reservation("r1", "10:00", duration_minutes=32))
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r2", "10:31", duration_minutes=29))

    def test_unassigned_duplicate_rejected(self, store):
        store.insert(make_reservation("r1", "10:00", staff_id=None))
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r2", "10:00", staff_id=None))
        assert store.size() == 1

    def test_unassigned_overlap_rejected(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00", staff_id=None))
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r2", "10:30", end_time="11:30", staff_id=None))

    def test_unassigned_and_assigned_use_separate_lanes(self, store):
        store.insert(make_reservation("r1", "10:00", staff_id=None))
        store.insert(make_reservation("r2", "10:00"))
        store.insert(make_reservation("r3", "10:00", staff_id=None, date_id="2026-03-03"))
        assert store.size() == 3


class TestCancelAndUpdate:
    def test_cancel_releases_slot(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        assert store.cancel("r1") is True
        assert store.get("r1")["status"] == "Cancelada"
        store.insert(make_reservation("r2", "10:00", end_time="11:00"))

    def test_cancel_unknown(self, store):
        assert store.cancel("missing") is False

    def test_update_moves_claims(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        updated = store.update("r1", {"time": "12:00", "end_time": "13:00"})
        assert updated["time"] == "12:00"
        store.insert(make_reservation("r2", "10:00", end_time="11:00"))
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r3", "12:30", end_time="13:30"))

    def test_update_may_overlap_its_own_interval(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        assert store.update("r1", {"time": "10:30", "end_time": "11:30"})["time"] == "10:30"

    def test_rejected_update_keeps_original_claims(self, store):
        store.insert(make_reservation("r1", "10:00", end_time="11:00"))
        store.insert(make_reservation("r2", "12:00", end_time="13:00"))
        with pytest.raises(StorageConflictError):
            store.update("r1", {"time": "12:00", "end_time": "13:00"})
        assert store.get("r1")["time"] == "10:00"
        with pytest.raises(StorageConflictError):
            store.insert(make_reservation("r3", "10:00", end_time="11:00"))

    def test_update_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.update("missing", {"time": "10:00"})


class TestReads:
    def test_list_for_date_sorted_snapshot(self, store):
        store.insert(make_reservation("r1", "12:00"))
        store.insert(make_reservation("r2", "09:00"))
        store.insert(make_reservation("r3", "09:00", date_id="2026-03-03"))
        snapshot = store.list_for_date("demo-barberia", MONDAY_ID)
        assert [r["id"] for r in snapshot] == ["r2", "r1"]

        snapshot[0]["time"] = "23:00"
        assert store.get("r2")["time"] == "09:00"

    def test_store_is_a_reservation_source(self, store):
        assert isinstance(store, ReservationSource)

    def test_clear(self, store):
        store.insert(make_reservation("r1", "10:00"))
        store.clear()
        assert store.size() == 0
        store.insert(make_reservation("r2", "10:00"))


class TestConcurrency:
    def test_one_writer_wins(self, store):
        """Twenty threads race for the same staff member and slot."""
        results = []
        barrier = threading.Barrier(20)

        def writer(n):
            barrier.wait()
            try:
                store.insert(make_reservation(f"r{n}", "10:00", end_time="11:00"))
                results.append("ok")
            except StorageConflictError:
                results.append("conflict")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == 1
        assert results.count("conflict") == 19
        assert store.size() == 1

    def test_size_consistent_under_concurrent_inserts(self, store):
        barrier = threading.Barrier(10)

        def writer(n):
            barrier.wait()
            store.insert(make_reservation(f"r{n}", f"{9 + n:02d}:00", end_time=f"{9 + n:02d}:45"))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.size() == 10
        assert len(store.claims("demo-barberia:s1:2026-03-02")) == 10


class TestSingleton:
    def test_get_returns_same_instance(self):
        reset_reservation_store()
        assert get_reservation_store() is get_reservation_store()

    def test_reset_creates_new_instance(self):
        first = get_reservation_store()
        reset_reservation_store()
        assert get_reservation_store() is not first
