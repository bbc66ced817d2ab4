"""Configuration constants for the availability engine."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from agenda_core.config_loader import load_config

load_dotenv()

# Engine identification
ENGINE_NAME = "AVAILABILITY_ENGINE"

# Duration used when neither the request, the service nor the reservation
# carries one. Shared by the read path (conflicts) and the write path.
DEFAULT_DURATION_MINUTES = int(os.getenv("BOOKING_DEFAULT_DURATION_MINUTES", "60"))

# Slot step when no layer of the schedule defines one
DEFAULT_SLOT_MINUTES = 60

# Requests up to this many minutes in the past are still accepted
PAST_GRACE_MINUTES = int(os.getenv("BOOKING_PAST_GRACE_MINUTES", "5"))

# How far ahead get_next_working_date searches
NEXT_WORKING_DATE_LOOKAHEAD_DAYS = 60

# Reject instead of failing open when tenant configuration is missing
STRICT_MODE = os.getenv("BOOKING_STRICT_MODE", "0").strip().lower() in ("1", "true", "yes")

# Hours applied when a tenant document has incomplete hours
DEFAULT_HOURS = {"open": "09:00", "close": "18:00", "slot_minutes": 60}


class EngineSettings:
    """Tunable policy of the availability engine."""

    __slots__ = (
        "strict_mode",
        "past_grace_minutes",
        "default_duration_minutes",
    )

    def __init__(
        self,
        strict_mode: bool = STRICT_MODE,
        past_grace_minutes: int = PAST_GRACE_MINUTES,
        default_duration_minutes: int = DEFAULT_DURATION_MINUTES,
    ) -> None:
        if past_grace_minutes < 0:
            raise ValueError(f"past_grace_minutes must be >= 0, got {past_grace_minutes}")
        if default_duration_minutes <= 0:
            raise ValueError(
                f"default_duration_minutes must be > 0, got {default_duration_minutes}"
            )
        self.strict_mode = bool(strict_mode)
        self.past_grace_minutes = int(past_grace_minutes)
        self.default_duration_minutes = int(default_duration_minutes)

    def __repr__(self) -> str:
        return (
            f"EngineSettings(strict_mode={self.strict_mode}, "
            f"past_grace_minutes={self.past_grace_minutes}, "
            f"default_duration_minutes={self.default_duration_minutes})"
        )


def settings_from_mapping(section: Optional[Dict[str, Any]]) -> EngineSettings:
    """
    Build EngineSettings from an `engine:` mapping, defaults for missing keys.

    Raises:
        ValueError: If the mapping has unknown keys or invalid values.
    """
    section = section or {}
    unknown = set(section) - set(EngineSettings.__slots__)
    if unknown:
        raise ValueError(f"Unknown engine settings: {sorted(unknown)}")
    return EngineSettings(**section)


def load_engine_settings(path: Optional[str | Path] = None) -> EngineSettings:
    """
    Load EngineSettings from the `engine:` section of a YAML file.

    Args:
        path: Optional YAML path. None returns env-aware defaults.

    Returns:
        EngineSettings instance.
    """
    if path is None:
        return EngineSettings()
    return settings_from_mapping(load_config(path).get("engine"))
