"""
Module: inventory_kernel.models.stock_movement
Responsibility: ORM model for the stock movement ledger -- the append-only
    record of every quantity-affecting event.
Architecture position: Kernel > Models.  Written only through
    ``StockLedger.append``; read through ``MovementSelector``.

Invariants enforced:
    - quantity_after = quantity_before + quantity (DB check constraint).
    - quantity_after >= 0 (DB check constraint).
    - Immutable from creation: UPDATE and DELETE are blocked by ORM
      listeners in db/immutability.py.
    - id grows with insertion order; (created_at, id) is the ledger order.

Failure modes:
    - IntegrityError if a caller bypasses StockLedger and writes an
      inconsistent running balance.
    - ImmutabilityViolationError on any update or delete through the ORM.

Audit relevance:
    The ledger is the source of truth for stock and for average buy price.
    Snapshots and the product mirror are caches of it and can always be
    rebuilt from these rows.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, IdType
from inventory_kernel.domain.movement_types import Direction, MovementType

if TYPE_CHECKING:
    from inventory_kernel.models.product import Product


class StockMovement(Base):
    """
    One ledger row.

    Contract:
        Quantity is signed: positive for inbound types, negative for
        outbound types, either sign for ``correction``.  quantity_before is
        the ledger total for the product at append time.

    Guarantees:
        - Never updated or deleted once flushed.
        - quantity_after is consistent with quantity_before + quantity.

    Non-goals:
        - Does not validate stock sufficiency; the reconciliation service
          rejects operations before they reach the ledger.
    """

    __tablename__ = "stock_movements"

    __table_args__ = (
        CheckConstraint(
            "quantity_after = quantity_before + quantity",
            name="ck_stock_movement_running_balance",
        ),
        CheckConstraint("quantity_after >= 0", name="ck_stock_movement_non_negative"),
        # Query: product history in ledger order
        Index("idx_stock_movement_product_created", "product_id", "created_at", "id"),
        # Query: rows created for a purchase / transaction / adjustment
        Index("idx_stock_movement_reference", "reference_type", "reference_id"),
        Index("idx_stock_movement_type", "movement_type"),
        Index("idx_stock_movement_journal", "journal_number"),
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=False,
    )

    # Null for system-generated movements
    user_id: Mapped[int | None] = mapped_column(nullable=True)

    movement_type: Mapped[MovementType] = mapped_column(String(20), nullable=False)

    quantity: Mapped[int] = mapped_column(nullable=False)

    unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    total_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    quantity_before: Mapped[int] = mapped_column(nullable=False)

    quantity_after: Mapped[int] = mapped_column(nullable=False)

    # purchase / transaction / adjustment
    reference_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    reference_id: Mapped[int | None] = mapped_column(nullable=True)

    # Set only on rows paired with a journaled adjustment
    journal_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    product: Mapped[Product] = relationship()

    @property
    def type(self) -> MovementType:
        return MovementType.parse(self.movement_type)

    @property
    def label(self) -> str:
        return self.type.label

    @property
    def direction(self) -> Direction:
        return self.type.direction

    @property
    def is_incoming(self) -> bool:
        return self.direction is Direction.INCOMING

    @property
    def is_outgoing(self) -> bool:
        return self.direction is Direction.OUTGOING

    def __repr__(self) -> str:
        return (
            f"<StockMovement {self.id} product={self.product_id} "
            f"{self.movement_type} {self.quantity:+d} -> {self.quantity_after}>"
        )
