"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable values that cross the boundary between the reconciliation
    service and its callers: stock requests to validate, validation issues,
    inventory summaries and drift reports.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - InvalidQuantityError from ``StockRequest`` on a negative or
      non-integer quantity.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from inventory_kernel.exceptions import InvalidQuantityError


@dataclass(frozen=True)
class StockRequest:
    """One cart line to check: product and requested quantity."""

    product_id: int
    quantity: int

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidQuantityError(self.quantity, "quantity must be an integer")
        if self.quantity < 0:
            raise InvalidQuantityError(self.quantity, "quantity must not be negative")

    @classmethod
    def coerce(cls, item: StockRequest | Mapping[str, Any]) -> StockRequest:
        """Accept either a StockRequest or a ``{product_id, quantity}`` mapping."""
        if isinstance(item, cls):
            return item
        return cls(product_id=item["product_id"], quantity=item["quantity"])


@dataclass(frozen=True)
class StockIssue:
    """A single deficient cart line found during validation."""

    product_id: int
    product_name: str
    code: str
    message: str
    available: int
    requested: int


@dataclass(frozen=True)
class StockValidationResult:
    """Outcome of an accumulate-all stock check."""

    valid: bool
    errors: tuple[StockIssue, ...] = ()

    @property
    def messages(self) -> list[str]:
        """Human-readable error strings, one per deficient line."""
        return [issue.message for issue in self.errors]


@dataclass(frozen=True)
class InventorySummary:
    """Aggregate stock position across all products."""

    total_products: int
    total_stock_value: Decimal
    total_sell_value: Decimal
    low_stock_count: int
    out_of_stock_count: int


@dataclass(frozen=True)
class ProductMovementSummary:
    """Per-product ledger totals for history screens."""

    product_id: int
    total_in: int
    total_out: int
    current_stock: int
    average_buy_price: Decimal
    inventory_stock: int


@dataclass(frozen=True)
class SnapshotDrift:
    """A product whose snapshot or mirror disagrees with its ledger."""

    product_id: int
    barcode: str
    ledger_quantity: int
    snapshot_quantity: int | None
    product_stock: int

    @property
    def missing_snapshot(self) -> bool:
        return self.snapshot_quantity is None


@dataclass(frozen=True)
class ConsistencyReport:
    """Result of a read-only ledger/snapshot/mirror comparison."""

    products_checked: int
    drifts: tuple[SnapshotDrift, ...] = field(default_factory=tuple)

    @property
    def is_consistent(self) -> bool:
        return not self.drifts
