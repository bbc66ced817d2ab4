"""Tests for time arithmetic.

These tests validate:
- HH:MM parsing and formatting, including lax inputs
- Slot generation over the half-open window [open, close)
- The single Sunday=0 -> Monday=0 weekday conversion
"""

from datetime import date, datetime

import pytest

from agenda_core.errors import INVALID_TIME_FORMAT, FormatError
from availability.time_arithmetic import (
    add_minutes_to_time,
    as_date,
    combine,
    domain_weekday,
    format_date_id,
    generate_slots,
    minutes_to_time,
    parse_date_id,
    sunday_based_to_domain,
    time_to_minutes,
)


class TestTimeToMinutes:
    """Parsing of HH:MM strings."""

    def test_parses_hours_and_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:30") == 570
        assert time_to_minutes("23:59") == 1439

    def test_missing_minutes_count_as_zero(self):
        """"9" and "9:" both mean 09:00."""
        assert time_to_minutes("9") == 540
        assert time_to_minutes("9:") == 540

    def test_no_range_check(self):
        """Values are not range-checked beyond numeric parsing."""
        assert time_to_minutes("25:00") == 1500
        assert time_to_minutes("10:75") == 675

    @pytest.mark.parametrize("value", ["ab:cd", "", "  ", "10:xx", None])
    def test_non_numeric_raises_format_error(self, value):
        with pytest.raises(FormatError) as exc_info:
            time_to_minutes(value)
        assert exc_info.value.code == INVALID_TIME_FORMAT

    def test_format_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            time_to_minutes("noon")


class TestMinutesToTime:
    """Formatting minute offsets."""

    def test_zero_pads(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(65) == "01:05"

    def test_does_not_clamp_past_midnight(self):
        assert minutes_to_time(1500) == "25:00"

    def test_add_minutes(self):
        assert add_minutes_to_time("17:30", 60) == "18:30"
        assert add_minutes_to_time("23:30", 60) == "24:30"

    @pytest.mark.parametrize("start,delta", [("09:00", 45), ("00:00", 1439), ("12:15", 0), ("18:00", 90)])
    def test_add_then_measure_recovers_delta(self, start, delta):
        assert time_to_minutes(add_minutes_to_time(start, delta)) - time_to_minutes(start) == delta


class TestGenerateSlots:
    """Slot starts over [open, close)."""

    def test_close_is_excluded(self):
        slots = list(generate_slots("09:00", "12:00", 60))
        assert slots == ["09:00", "10:00", "11:00"]

    def test_partial_last_step_is_kept(self):
        """A start before close is emitted even when the step overruns close."""
        assert list(generate_slots("09:00", "10:15", 30)) == ["09:00", "09:30", "10:00"]

    def test_empty_when_open_equals_close(self):
        assert list(generate_slots("09:00", "09:00", 30)) == []

    def test_sequence_is_restartable(self):
        slots = generate_slots("09:00", "11:00", 30)
        assert list(slots) == list(slots)
        assert len(slots) == 4

    def test_membership(self):
        slots = generate_slots("09:00", "11:00", 30)
        assert "10:30" in slots
        assert "11:00" not in slots
        assert "09:15" not in slots

    @pytest.mark.parametrize("step", [0, -15])
    def test_non_positive_step_raises(self, step):
        with pytest.raises(ValueError):
            generate_slots("09:00", "18:00", step)


class TestWeekdays:
    """Monday=0 domain weekdays."""

    def test_sunday_based_conversion(self):
        assert sunday_based_to_domain(0) == 6  # Sunday
        assert sunday_based_to_domain(1) == 0  # Monday
        assert sunday_based_to_domain(6) == 5  # Saturday

    def test_domain_weekday_of_known_dates(self):
        assert domain_weekday(date(2026, 3, 2)) == 0
        assert domain_weekday(date(2026, 3, 7)) == 5
        assert domain_weekday(date(2026, 3, 8)) == 6

    def test_domain_weekday_matches_python_weekday(self):
        day = date(2026, 1, 1)
        for offset in range(14):
            current = date.fromordinal(day.toordinal() + offset)
            assert domain_weekday(current) == current.weekday()


class TestDateKeys:
    """YYYY-MM-DD keys."""

    def test_parse_and_format(self):
        assert parse_date_id("2026-03-02") == date(2026, 3, 2)
        assert format_date_id(date(2026, 3, 2)) == "2026-03-02"

    @pytest.mark.parametrize("value", ["2026-13-01", "02/03/2026", ""])
    def test_invalid_date_raises_format_error(self, value):
        with pytest.raises(FormatError):
            parse_date_id(value)

    def test_as_date_accepts_dates_and_datetimes(self):
        assert as_date(date(2026, 3, 2)) == date(2026, 3, 2)
        assert as_date(datetime(2026, 3, 2, 10, 0)) == date(2026, 3, 2)
        assert as_date("2026-03-02") == date(2026, 3, 2)

    def test_combine_rolls_24_00_to_next_day(self):
        assert combine(date(2026, 3, 2), "10:30") == datetime(2026, 3, 2, 10, 30)
        assert combine(date(2026, 3, 2), "24:00") == datetime(2026, 3, 3, 0, 0)
