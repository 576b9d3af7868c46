"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read-side queries over the stock movement ledger: current
    stock, average buy price, product history and the filtering scopes used
    by reporting collaborators.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Current stock is a fold over the ledger (SUM of quantity), never a
      cached value.
    - Average buy price is recomputed from ``purchase`` rows only on every
      call; adjustment_in and return rows never establish cost.
    - Incoming / outgoing scopes filter on the static type direction, not
      on the sign of the stored quantity.
    - History order is (created_at, id).

Failure modes:
    - InvalidMovementTypeError for an unknown movement type filter.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Select, func, select

from inventory_kernel.domain.movement_types import (
    INCOMING_TYPES,
    OUTGOING_TYPES,
    Direction,
    MovementType,
    ReferenceType,
)
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.purchase import Purchase
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.models.transaction import Transaction
from inventory_kernel.selectors.base import BaseSelector

_CENT = Decimal("0.01")
_ZERO = Decimal("0.00")


def _to_decimal(value) -> Decimal:
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _average(total_price, total_quantity) -> Decimal:
    if not total_quantity:
        return _ZERO
    return (_to_decimal(total_price) / Decimal(int(total_quantity))).quantize(
        _CENT, rounding=ROUND_HALF_UP
    )


class MovementSelector(BaseSelector):
    """
    Selector for ledger queries.

    Contract:
        All aggregates are computed from ``stock_movements`` at call time.

    Guarantees:
        - ``current_stock`` returns 0 for a product with no rows.
        - ``average_buy_price`` returns 0.00 when no purchase rows exist.
    """

    def current_stock(self, product_id: int) -> int:
        """Sum of ledger quantities for one product."""
        total = self.session.execute(
            select(func.coalesce(func.sum(StockMovement.quantity), 0)).where(
                StockMovement.product_id == product_id
            )
        ).scalar_one()
        return int(total)

    def average_buy_price(self, product_id: int) -> Decimal:
        """Total purchase spend / purchased quantity, rounded to 2 places."""
        row = self.session.execute(
            select(
                func.sum(StockMovement.total_price),
                func.sum(StockMovement.quantity),
            ).where(
                StockMovement.product_id == product_id,
                StockMovement.movement_type == MovementType.PURCHASE.value,
            )
        ).one()
        return _average(row[0], row[1])

    def stock_by_product(self, product_ids: Iterable[int] | None = None) -> dict[int, int]:
        """Ledger totals grouped by product (products without rows omitted)."""
        stmt = select(
            StockMovement.product_id, func.sum(StockMovement.quantity)
        ).group_by(StockMovement.product_id)
        if product_ids is not None:
            stmt = stmt.where(StockMovement.product_id.in_(list(product_ids)))
        return {pid: int(total) for pid, total in self.session.execute(stmt)}

    def average_buy_prices(self, product_ids: Iterable[int]) -> dict[int, Decimal]:
        """Average buy price for many products in one query."""
        ids = list(product_ids)
        if not ids:
            return {}
        stmt = (
            select(
                StockMovement.product_id,
                func.sum(StockMovement.total_price),
                func.sum(StockMovement.quantity),
            )
            .where(
                StockMovement.product_id.in_(ids),
                StockMovement.movement_type == MovementType.PURCHASE.value,
            )
            .group_by(StockMovement.product_id)
        )
        prices = {pid: _average(spend, qty) for pid, spend, qty in self.session.execute(stmt)}
        return {pid: prices.get(pid, _ZERO) for pid in ids}

    def totals_by_direction(self, product_id: int) -> tuple[int, int]:
        """(total in, total out) over incoming and outgoing types.

        Corrections belong to neither side.  ``total_out`` is returned as a
        positive magnitude.
        """
        total_in = self.session.execute(
            select(func.coalesce(func.sum(StockMovement.quantity), 0)).where(
                StockMovement.product_id == product_id,
                StockMovement.movement_type.in_([t.value for t in INCOMING_TYPES]),
            )
        ).scalar_one()
        total_out = self.session.execute(
            select(func.coalesce(func.sum(StockMovement.quantity), 0)).where(
                StockMovement.product_id == product_id,
                StockMovement.movement_type.in_([t.value for t in OUTGOING_TYPES]),
            )
        ).scalar_one()
        return int(total_in), abs(int(total_out))

    def history(
        self,
        product_id: int,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        movement_type: MovementType | str | None = None,
    ) -> list[StockMovement]:
        """All ledger rows for a product in occurrence order."""
        return self.filter(
            product_id=product_id,
            movement_types=[movement_type] if movement_type is not None else None,
            date_from=date_from,
            date_to=date_to,
        )

    def for_reference(
        self, reference_type: ReferenceType | str, reference_id: int
    ) -> list[StockMovement]:
        """Ledger rows produced by one purchase, transaction or adjustment."""
        return self.filter(reference=(reference_type, reference_id))

    def filter(
        self,
        *,
        product_id: int | None = None,
        movement_types: Sequence[MovementType | str] | None = None,
        direction: Direction | str | None = None,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        reference: tuple[ReferenceType | str, int] | None = None,
        with_journal: bool = False,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[StockMovement]:
        """Apply any combination of ledger scopes and return the rows."""
        stmt = self.query(
            product_id=product_id,
            movement_types=movement_types,
            direction=direction,
            date_from=date_from,
            date_to=date_to,
            reference=reference,
            with_journal=with_journal,
        )
        if newest_first:
            stmt = stmt.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        else:
            stmt = stmt.order_by(StockMovement.created_at, StockMovement.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def query(
        self,
        *,
        product_id: int | None = None,
        movement_types: Sequence[MovementType | str] | None = None,
        direction: Direction | str | None = None,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        reference: tuple[ReferenceType | str, int] | None = None,
        with_journal: bool = False,
    ) -> Select:
        """Unordered SELECT with the requested scopes, for callers that paginate."""
        stmt = select(StockMovement)
        if product_id is not None:
            stmt = stmt.where(StockMovement.product_id == product_id)
        if movement_types:
            values = [MovementType.parse(t).value for t in movement_types]
            stmt = stmt.where(StockMovement.movement_type.in_(values))
        if direction is not None:
            wanted = Direction(direction)
            if wanted is Direction.INCOMING:
                types = INCOMING_TYPES
            elif wanted is Direction.OUTGOING:
                types = OUTGOING_TYPES
            else:
                types = frozenset({MovementType.CORRECTION})
            stmt = stmt.where(StockMovement.movement_type.in_([t.value for t in types]))
        for clause in self._date_range(StockMovement.created_at, date_from, date_to):
            stmt = stmt.where(clause)
        if reference is not None:
            ref_type, ref_id = reference
            stmt = stmt.where(
                StockMovement.reference_type == ReferenceType(ref_type).value,
                StockMovement.reference_id == ref_id,
            )
        if with_journal:
            stmt = stmt.where(StockMovement.journal_number.is_not(None))
        return stmt

    def get_reference(
        self, movement: StockMovement
    ) -> Purchase | Transaction | InventoryAdjustment | None:
        """Resolve the record a ledger row points back to."""
        if movement.reference_type is None or movement.reference_id is None:
            return None
        model = {
            ReferenceType.PURCHASE: Purchase,
            ReferenceType.TRANSACTION: Transaction,
            ReferenceType.ADJUSTMENT: InventoryAdjustment,
        }[ReferenceType(movement.reference_type)]
        return self.session.get(model, movement.reference_id)
