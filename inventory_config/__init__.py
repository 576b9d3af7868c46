"""
inventory_config -- single public entrypoint for stock core settings.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads the settings file
    or the override environment variables directly.

Architecture position:
    Configuration.  Sits above ``inventory_kernel`` and below
    ``inventory_services``.  The kernel MUST NEVER import from
    ``inventory_config``; services translate settings into plain
    constructor arguments for kernel objects.

Failure modes:
    - ``FileNotFoundError`` -- the settings file named by
      ``INVENTORY_CONFIG_PATH`` does not exist.
    - ``ValueError`` -- unknown key or invalid value.

Audit relevance:
    The first successful load emits an ``inventory_config_loaded`` log
    entry with the effective (non-secret) settings.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from inventory_config.loader import DEFAULT_CONFIG_PATH, load_config
from inventory_config.schema import InventoryConfig
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_PATH_ENV = "INVENTORY_CONFIG_PATH"

_active: InventoryConfig | None = None
_lock = threading.Lock()


def get_active_config(config_path: Path | None = None) -> InventoryConfig:
    """The ONLY public configuration entrypoint.

    The parsed config is cached for the process; passing ``config_path``
    bypasses and does not populate the cache.

    Args:
        config_path: Explicit settings file.  Defaults to
            ``$INVENTORY_CONFIG_PATH`` or the packaged defaults.
    """
    global _active
    if config_path is not None:
        return _load(config_path)
    with _lock:
        if _active is None:
            env_path = os.environ.get(CONFIG_PATH_ENV)
            _active = _load(Path(env_path) if env_path else DEFAULT_CONFIG_PATH)
        return _active


def reset_active_config() -> None:
    """Drop the cached config. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


def _load(path: Path) -> InventoryConfig:
    config = load_config(path)
    _logger.info(
        "inventory_config_loaded",
        extra={
            "config_path": str(path),
            "dialect": config.database_url.split(":", 1)[0],
            "low_stock_threshold": config.low_stock_threshold,
            "journal_prefix": config.journal_prefix,
            "timezone": config.timezone,
        },
    )
    return config


__all__ = [
    "InventoryConfig",
    "get_active_config",
    "reset_active_config",
]
