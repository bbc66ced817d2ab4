"""Tests for the schedule resolver.

These tests validate:
- Layer priority: staff day > staff default > business day > business default
- Inactive overrides close the day
- use_business_hours skips every staff layer
- Empty windows are treated as closed
- Resolution is deterministic
"""

import pytest

from availability.schedule_resolver import generate_slots_for_hours, resolve_effective_hours
from fixtures import MONDAY, MONDAY_ID, SATURDAY, SUNDAY, TUESDAY, make_business_hours, make_staff


@pytest.fixture
def business_hours():
    """09:00-18:00 every 60 min, Saturday 10:00-14:00, Sunday closed."""
    return make_business_hours(
        days=[
            {"day": 5, "open": "10:00", "close": "14:00", "active": True},
            {"day": 6, "active": False},
        ]
    )


class TestBusinessResolution:
    """Business-level hours."""

    def test_default_weekday(self, business_hours):
        assert resolve_effective_hours(business_hours, MONDAY) == {
            "open": "09:00", "close": "18:00", "slot_minutes": 60,
        }

    def test_accepts_date_id_strings(self, business_hours):
        assert resolve_effective_hours(business_hours, MONDAY_ID) == resolve_effective_hours(business_hours, MONDAY)

    def test_day_override(self, business_hours):
        hours = resolve_effective_hours(business_hours, SATURDAY)
        assert hours == {"open": "10:00", "close": "14:00", "slot_minutes": 60}

    def test_inactive_override_closes(self, business_hours):
        assert resolve_effective_hours(business_hours, SUNDAY) is None

    def test_override_without_times_falls_back_to_top_level(self):
        hours = make_business_hours(days=[{"day": 0, "close": "13:00"}])
        assert resolve_effective_hours(hours, MONDAY) == {"open": "09:00", "close": "13:00", "slot_minutes": 60}

    def test_no_business_hours_is_closed(self):
        assert resolve_effective_hours(None, MONDAY) is None

    def test_open_not_before_close_is_closed(self):
        assert resolve_effective_hours(make_business_hours("18:00", "09:00"), MONDAY) is None
        assert resolve_effective_hours(make_business_hours("09:00", "09:00"), MONDAY) is None

    def test_missing_slot_minutes_defaults_to_60(self):
        hours = {"open": "09:00", "close": "12:00"}
        assert resolve_effective_hours(hours, MONDAY)["slot_minutes"] == 60


class TestStaffResolution:
    """Staff layers on top of the business schedule."""

    def test_staff_day_override_wins(self, business_hours):
        staff = make_staff(
            hours={"open": "12:00", "close": "20:00"},
            days=[{"day": 0, "open": "08:00", "close": "11:00", "slot_minutes": 15, "active": True}],
        )
        assert resolve_effective_hours(business_hours, MONDAY, staff) == {
            "open": "08:00", "close": "11:00", "slot_minutes": 15,
        }

    def test_inactive_staff_day_closes_even_when_business_open(self, business_hours):
        staff = make_staff(days=[{"day": 0, "active": False}])
        assert resolve_effective_hours(business_hours, MONDAY, staff) is None

    def test_staff_default_hours(self, business_hours):
        staff = make_staff(hours={"open": "12:00", "close": "20:00"})
        assert resolve_effective_hours(business_hours, TUESDAY, staff) == {
            "open": "12:00", "close": "20:00", "slot_minutes": 60,
        }

    def test_staff_slot_minutes_falls_through_to_business(self):
        business = make_business_hours(slot_minutes=30)
        staff = make_staff(hours={"open": "12:00", "close": "20:00"})
        assert resolve_effective_hours(business, MONDAY, staff)["slot_minutes"] == 30

    def test_staff_default_hours_limited_to_days_of_week(self, business_hours):
        staff = make_staff(hours={"open": "12:00", "close": "20:00", "days_of_week": [1, 2]})
        assert resolve_effective_hours(business_hours, MONDAY, staff) is None
        assert resolve_effective_hours(business_hours, TUESDAY, staff)["open"] == "12:00"

    def test_staff_default_hours_apply_on_business_closed_day(self, business_hours):
        """A staff layer that resolves is not intersected with the business."""
        staff = make_staff(hours={"open": "10:00", "close": "12:00"})
        assert resolve_effective_hours(business_hours, SUNDAY, staff) == {
            "open": "10:00", "close": "12:00", "slot_minutes": 60,
        }

    def test_staff_without_own_hours_falls_through(self, business_hours):
        staff = make_staff()
        assert resolve_effective_hours(business_hours, SATURDAY, staff) == resolve_effective_hours(
            business_hours, SATURDAY
        )

    def test_use_business_hours_skips_staff_layers(self, business_hours):
        staff = make_staff(
            hours={"open": "12:00", "close": "20:00"},
            use_business_hours=True,
            days=[{"day": 0, "active": False}],
        )
        assert resolve_effective_hours(business_hours, MONDAY, staff) == {
            "open": "09:00", "close": "18:00", "slot_minutes": 60,
        }
        assert resolve_effective_hours(business_hours, SUNDAY, staff) is None

    def test_resolution_is_idempotent(self, business_hours):
        staff = make_staff(hours={"open": "12:00", "close": "20:00"})
        first = resolve_effective_hours(business_hours, MONDAY, staff)
        second = resolve_effective_hours(business_hours, MONDAY, staff)
        assert first == second
        assert staff == make_staff(hours={"open": "12:00", "close": "20:00"})


class TestSlotsForHours:
    """Slot generation from resolved hours."""

    def test_closed_day_has_no_slots(self):
        assert list(generate_slots_for_hours(None)) == []

    def test_slots_use_resolved_step(self):
        hours = {"open": "09:00", "close": "11:00", "slot_minutes": 30}
        assert list(generate_slots_for_hours(hours)) == ["09:00", "09:30", "10:00", "10:30"]
