"""
StockLedger -- the only mutator of the stock movement ledger.

Responsibility:
    Appends ledger rows with a running balance computed from the ledger
    itself, and exposes the authoritative stock and average buy price
    queries (delegated to MovementSelector).

Architecture position:
    Kernel > Services.  Called by StockReconciliationService and by
    AdjustmentJournal when recording a journaled adjustment.

Invariants enforced:
    - quantity_before is the ledger total at append time (read inside the
      caller's transaction, after the product lock was taken).
    - quantity_after = quantity_before + quantity.
    - The sign of quantity agrees with the movement type's static
      direction; correction rows may carry either sign.
    - Rows are stamped with the injected clock's UTC time.

Failure modes:
    - InvalidQuantityError: non-integer quantity, or a sign that contradicts
      the movement type.
    - InvalidMovementTypeError: unknown movement type.
    - IntegrityError: the append would leave quantity_after < 0.  Callers
      are expected to reject such operations before appending.

Audit relevance:
    Every append is logged as ``stock_movement_appended`` with the product,
    type, signed quantity and resulting balance.
"""

from decimal import Decimal

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.movement_types import Direction, MovementType, ReferenceType
from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class StockLedger(BaseService):
    """
    Append-only access to ``stock_movements``.

    Contract:
        ``append`` is the single write path.  Reads are pure folds over the
        ledger.

    Guarantees:
        - Returned rows are flushed (they have an id).

    Non-goals:
        - Does not check stock sufficiency or lock products; the caller
          holds the product lock and validates first.
        - Does not touch snapshots or the product mirror.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._movements = MovementSelector(session)

    def current_stock(self, product_id: int) -> int:
        return self._movements.current_stock(product_id)

    def average_buy_price(self, product_id: int) -> Decimal:
        return self._movements.average_buy_price(product_id)

    def append(
        self,
        product_id: int,
        movement_type: MovementType | str,
        quantity: int,
        unit_price: Decimal | None = None,
        total_price: Decimal | None = None,
        reference_type: ReferenceType | str | None = None,
        reference_id: int | None = None,
        user_id: int | None = None,
        notes: str | None = None,
        journal_number: str | None = None,
    ) -> StockMovement:
        """
        Append one ledger row.

        Args:
            product_id: Product the movement applies to.
            movement_type: Kind of movement.
            quantity: Signed quantity (sign must match the type's direction).
            unit_price: Optional price per unit.
            total_price: Optional line total; defaults to unit_price * |quantity|.
            reference_type: purchase / transaction / adjustment.
            reference_id: Id of the originating record.
            user_id: Acting user, None for system movements.
            notes: Free text.
            journal_number: Journal number when paired with an adjustment.

        Returns:
            The flushed StockMovement.
        """
        mtype = MovementType.parse(movement_type)
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError(quantity, "quantity must be an integer")
        if mtype.direction is Direction.INCOMING and quantity <= 0:
            raise InvalidQuantityError(quantity, f"{mtype.value} quantity must be positive")
        if mtype.direction is Direction.OUTGOING and quantity >= 0:
            raise InvalidQuantityError(quantity, f"{mtype.value} quantity must be negative")

        if total_price is None and unit_price is not None:
            total_price = Decimal(unit_price) * abs(quantity)

        quantity_before = self._movements.current_stock(product_id)
        movement = StockMovement(
            product_id=product_id,
            user_id=user_id,
            movement_type=mtype.value,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
            quantity_before=quantity_before,
            quantity_after=quantity_before + quantity,
            reference_type=ReferenceType(reference_type).value if reference_type else None,
            reference_id=reference_id,
            journal_number=journal_number,
            notes=notes,
            created_at=self._clock.now_utc(),
        )
        self.session.add(movement)
        self.session.flush()

        logger.info(
            "stock_movement_appended",
            extra={
                "movement_id": movement.id,
                "product_id": product_id,
                "movement_type": mtype.value,
                "quantity": quantity,
                "quantity_before": quantity_before,
                "quantity_after": movement.quantity_after,
                "reference_type": movement.reference_type,
                "reference_id": reference_id,
            },
        )
        return movement
