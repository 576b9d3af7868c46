"""
Module: inventory_kernel.models.adjustment
Responsibility: ORM model for the adjustment journal -- manual stock changes
    identified by a sequential journal number.
Architecture position: Kernel > Models.  Written only through
    ``AdjustmentJournal.record``.

Invariants enforced:
    - journal_number is unique when set.  Null is tolerated for legacy
      rows only; the journal service always assigns one.
    - quantity_after = quantity_before + quantity_change >= 0.
    - Every entry is paired with exactly one ledger row
      (reference_type="adjustment", reference_id=entry.id) carrying the
      same before/change/after.
    - Recorded fields are immutable; only ``notes`` may be edited.

Failure modes:
    - IntegrityError on a duplicate journal_number (retried by the
      reconciliation service with the next number).
    - ImmutabilityViolationError on edits to recorded fields or deletes.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase
from inventory_kernel.domain.movement_types import MovementType

if TYPE_CHECKING:
    from inventory_kernel.models.product import Product
    from inventory_kernel.models.stock_movement import StockMovement


class InventoryAdjustment(TrackedBase):
    """
    One journaled manual adjustment.

    Contract:
        ``type`` is one of adjustment_in, adjustment_out, return, damage or
        correction.  quantity_change is signed.

    Guarantees:
        - ``stock_movement`` resolves the paired ledger row.
    """

    __tablename__ = "inventory_adjustments"

    __table_args__ = (
        CheckConstraint(
            "quantity_after = quantity_before + quantity_change",
            name="ck_adjustment_running_balance",
        ),
        CheckConstraint("quantity_after >= 0", name="ck_adjustment_non_negative"),
        Index("idx_adjustment_product_created", "product_id", "created_at"),
        Index("idx_adjustment_type", "type"),
    )

    journal_number: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
        unique=True,
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=False,
    )

    user_id: Mapped[int | None] = mapped_column(nullable=True)

    type: Mapped[MovementType] = mapped_column(String(20), nullable=False)

    quantity_before: Mapped[int] = mapped_column(nullable=False)

    quantity_change: Mapped[int] = mapped_column(nullable=False)

    quantity_after: Mapped[int] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    product: Mapped[Product] = relationship()

    stock_movement: Mapped[StockMovement | None] = relationship(
        "StockMovement",
        primaryjoin=(
            "and_(foreign(StockMovement.reference_id) == InventoryAdjustment.id, "
            "StockMovement.reference_type == 'adjustment')"
        ),
        uselist=False,
        viewonly=True,
    )

    @property
    def movement_type(self) -> MovementType:
        return MovementType.parse(self.type)

    @property
    def type_label(self) -> str:
        return self.movement_type.journal_label or self.movement_type.label

    @property
    def has_journal(self) -> bool:
        return self.journal_number is not None

    def __repr__(self) -> str:
        return (
            f"<InventoryAdjustment {self.id} {self.journal_number} "
            f"{self.type} {self.quantity_change:+d}>"
        )
