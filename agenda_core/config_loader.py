"""YAML configuration loader utility."""

from pathlib import Path
from typing import Any

import yaml


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Dictionary containing the parsed configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the file contains invalid YAML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    return config if config is not None else {}


def load_tenant_file(path: str | Path) -> dict[str, Any]:
    """
    Load a tenant snapshot file (profile document plus reservations).

    Expected layout:
        engine: {...}            (optional, see availability.config)
        profile: {clientId, hours, staff, services, ...}
        reservations: [{dateId, time, staffId, status, ...}, ...]

    Args:
        path: Path to the YAML file.

    Returns:
        Dict with 'profile' (dict or None), 'reservations' (list) and
        'engine' (dict).

    Raises:
        ValueError: If reservations is not a list.
    """
    data = load_config(path)
    reservations = data.get("reservations") or []
    if not isinstance(reservations, list):
        raise ValueError(
            f"Tenant file {path}: 'reservations' must be a list, "
            f"got {type(reservations).__name__}"
        )
    return {
        "profile": data.get("profile"),
        "reservations": reservations,
        "engine": data.get("engine") or {},
    }
