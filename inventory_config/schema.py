"""
InventoryConfig schema.

The runtime settings of the stock core, parsed from YAML by the loader and
handed to services as one frozen value.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class InventoryConfig:
    """Validated, immutable runtime settings."""

    database_url: str = "sqlite:///inventory.db"
    # Low stock is 0 < quantity <= low_stock_threshold
    low_stock_threshold: int = 10
    journal_prefix: str = "ADJ"
    journal_sequence_width: int = 4
    # Bounded retry when a journal number is already taken
    journal_max_attempts: int = 3
    # Business time zone for journal dates and day-based filters
    timezone: str = "Asia/Jakarta"
    # Products per batch when aggregating across the catalogue
    summary_batch_size: int = 100
    log_level: str = "INFO"

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))
