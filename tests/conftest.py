"""
Pytest configuration and fixtures.

Sets up import paths for the test suite and isolates the global
reservation store between tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Add tests directory to path for fixtures
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from agenda_core.infrastructure import reset_reservation_store  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_reservation_store():
    """Every test starts without a global ReservationStore."""
    reset_reservation_store()
    yield
    reset_reservation_store()
