"""
Fixtures package for engine testing.

Provides reusable tenant builders and reference dates.
"""

from fixtures.sample_tenant import (
    BEFORE_MONDAY,
    CLIENT_ID,
    MONDAY,
    MONDAY_ID,
    SATURDAY,
    SUNDAY,
    TUESDAY,
    make_business_hours,
    make_profile_document,
    make_reservation,
    make_staff,
)

__all__ = [
    "BEFORE_MONDAY",
    "CLIENT_ID",
    "MONDAY",
    "MONDAY_ID",
    "SATURDAY",
    "SUNDAY",
    "TUESDAY",
    "make_business_hours",
    "make_profile_document",
    "make_reservation",
    "make_staff",
]
