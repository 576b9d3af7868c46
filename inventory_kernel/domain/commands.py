"""
AdjustmentCommand -- a manual stock change planned as one domain operation.

Responsibility:
    Computes quantity_before / quantity_change / quantity_after for a manual
    adjustment or a stock correction and rejects invalid requests before
    anything is written.  The same command instance then drives both the
    journal entry and its paired ledger row, so the two cannot disagree.

Architecture position:
    Kernel > Domain -- pure, no ORM or I/O.  Executed by
    ``AdjustmentJournal.record``.

Invariants enforced:
    - Adjustments take an unsigned magnitude > 0; the sign comes from the
      movement type.
    - Corrections take an absolute target >= 0; the sign of the change
      follows ``target - current`` and may be zero.
    - quantity_after = quantity_before + quantity_change >= 0.

Failure modes:
    - InvalidQuantityError: magnitude <= 0, target < 0, or non-integer.
    - InvalidMovementTypeError: type is not a manual adjustment type, or is
      ``correction`` when an unsigned adjustment was requested.
    - OutOfStockError / InsufficientStockError: the change would drive
      stock below zero.
"""

from dataclasses import dataclass

from inventory_kernel.domain.movement_types import (
    ADJUSTMENT_INCOMING_TYPES,
    ADJUSTMENT_OUTGOING_TYPES,
    MovementType,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidMovementTypeError,
    InvalidQuantityError,
    OutOfStockError,
)

_SIGNED_ADJUSTMENT_TYPES = ADJUSTMENT_INCOMING_TYPES | ADJUSTMENT_OUTGOING_TYPES


def _require_int(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(value, "quantity must be an integer")
    return value


@dataclass(frozen=True)
class AdjustmentCommand:
    """
    Planned manual stock change for one product.

    Contract:
        Built only through ``for_adjustment`` or ``for_correction``, which
        validate their inputs against the current ledger stock.

    Guarantees:
        - ``quantity_after`` is never negative.
        - ``movement_type`` is one of the journaled manual types.
    """

    product_id: int
    movement_type: MovementType
    quantity_before: int
    quantity_change: int
    reason: str | None
    notes: str | None = None
    user_id: int | None = None

    @property
    def quantity_after(self) -> int:
        return self.quantity_before + self.quantity_change

    @classmethod
    def for_adjustment(
        cls,
        *,
        product_id: int,
        product_name: str,
        current_stock: int,
        quantity: int,
        movement_type: MovementType | str,
        reason: str | None,
        notes: str | None = None,
        user_id: int | None = None,
    ) -> "AdjustmentCommand":
        """Plan an incoming or outgoing adjustment by unsigned magnitude."""
        mtype = MovementType.parse(movement_type)
        if mtype not in _SIGNED_ADJUSTMENT_TYPES:
            raise InvalidMovementTypeError(
                mtype.value,
                allowed=tuple(sorted(t.value for t in _SIGNED_ADJUSTMENT_TYPES)),
            )
        quantity = _require_int(quantity)
        if quantity <= 0:
            raise InvalidQuantityError(quantity, "adjustment quantity must be greater than zero")

        change = mtype.signed(quantity)
        if current_stock + change < 0:
            if current_stock <= 0:
                raise OutOfStockError(product_id, product_name, requested=quantity)
            raise InsufficientStockError(
                product_id, product_name, available=current_stock, requested=quantity
            )

        return cls(
            product_id=product_id,
            movement_type=mtype,
            quantity_before=current_stock,
            quantity_change=change,
            reason=reason,
            notes=notes,
            user_id=user_id,
        )

    @classmethod
    def for_correction(
        cls,
        *,
        product_id: int,
        current_stock: int,
        new_quantity: int,
        reason: str | None,
        notes: str | None = None,
        user_id: int | None = None,
    ) -> "AdjustmentCommand":
        """Plan a set-to-value correction (stock opname)."""
        new_quantity = _require_int(new_quantity)
        if new_quantity < 0:
            raise InvalidQuantityError(new_quantity, "corrected quantity must not be negative")

        return cls(
            product_id=product_id,
            movement_type=MovementType.CORRECTION,
            quantity_before=current_stock,
            quantity_change=new_quantity - current_stock,
            reason=reason,
            notes=notes,
            user_id=user_id,
        )
