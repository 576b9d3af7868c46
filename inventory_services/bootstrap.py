"""
Process start-up from settings.

The kernel's engine module takes plain arguments; this is where the
``database_url`` and ``log_level`` settings reach it.
"""

from typing import Any

from sqlalchemy.engine import Engine

from inventory_config import InventoryConfig, get_active_config
from inventory_kernel.db.engine import init_engine_from_url


def init_engine_from_config(config: InventoryConfig | None = None, **pool_options: Any) -> Engine:
    """
    Build the process-wide engine and configure logging from settings.

    Args:
        config: Settings.  Defaults to ``get_active_config()``.
        pool_options: Passed through to ``build_engine``.
    """
    config = config or get_active_config()
    return init_engine_from_url(
        config.database_url,
        log_level=config.log_level,
        **pool_options,
    )
