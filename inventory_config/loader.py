"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads the YAML settings file, applies environment overrides, and parses
the result into a validated ``InventoryConfig``.  Runtime code should go
through ``inventory_config.get_active_config()`` instead of calling this
directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value -> ``ValueError`` naming
  the key.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from inventory_config.schema import InventoryConfig

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "inventory.yaml"

# Environment variable -> config key
ENV_OVERRIDES: dict[str, str] = {
    "DATABASE_URL": "database_url",
    "INVENTORY_LOW_STOCK_THRESHOLD": "low_stock_threshold",
    "INVENTORY_TIMEZONE": "timezone",
    "INVENTORY_LOG_LEVEL": "log_level",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_POSITIVE_INT_KEYS = (
    "low_stock_threshold",
    "journal_sequence_width",
    "journal_max_attempts",
    "summary_batch_size",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def apply_env_overrides(
    data: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Return a copy of ``data`` with any set override variables applied."""
    environ = os.environ if environ is None else environ
    merged = dict(data)
    for var, key in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            merged[key] = value
    return merged


def parse_config(data: Mapping[str, Any]) -> InventoryConfig:
    """
    Validate a settings mapping and build an ``InventoryConfig``.

    Integer settings given as strings (environment overrides) are converted.
    """
    unknown = set(data) - InventoryConfig.field_names()
    if unknown:
        raise ValueError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")

    values = dict(data)
    for key in _POSITIVE_INT_KEYS:
        if key not in values:
            continue
        raw = values[key]
        try:
            if isinstance(raw, bool):
                raise TypeError
            number = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be an integer, got {raw!r}") from None
        if number <= 0:
            raise ValueError(f"{key} must be greater than zero, got {number}")
        values[key] = number

    prefix = values.get("journal_prefix", InventoryConfig.journal_prefix)
    if not isinstance(prefix, str) or not prefix.strip():
        raise ValueError("journal_prefix must be a non-empty string")

    tz_name = values.get("timezone", InventoryConfig.timezone)
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"timezone {tz_name!r} is not a known IANA time zone") from None

    if "log_level" in values:
        level = str(values["log_level"]).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
        values["log_level"] = level

    return InventoryConfig(**values)


def load_config(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> InventoryConfig:
    """Read, override and validate the settings file."""
    data = load_yaml_file(path or DEFAULT_CONFIG_PATH)
    return parse_config(apply_env_overrides(data, environ))
