"""Availability engine - schedule resolution, conflict detection and booking checks."""

from availability.booking_validator import BookingContext, can_book_slot, validate_booking
from availability.conflict_detector import has_conflict, is_overlapping
from availability.schedule_resolver import generate_slots_for_hours, resolve_effective_hours
from availability.staff_selector import auto_select_staff, find_available_staff
from availability.time_arithmetic import add_minutes_to_time, generate_slots, minutes_to_time, time_to_minutes

__all__ = [
    "BookingContext",
    "add_minutes_to_time",
    "auto_select_staff",
    "can_book_slot",
    "find_available_staff",
    "generate_slots",
    "generate_slots_for_hours",
    "has_conflict",
    "is_overlapping",
    "minutes_to_time",
    "resolve_effective_hours",
    "time_to_minutes",
    "validate_booking",
]
