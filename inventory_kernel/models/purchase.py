"""
Module: inventory_kernel.models.purchase
Responsibility: ORM models for supplier purchases (Purchase, PurchaseItem).
Architecture position: Kernel > Models.

Purchases are recorded by purchasing screens.  When a purchase is received
the reconciliation service turns each line into a ``purchase`` ledger row;
cancelling a received purchase writes the reversing rows.  These models are
never modified by the stock core.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.product import Product


class Purchase(TrackedBase):
    """A delivery from a supplier, made of one or more line items."""

    __tablename__ = "purchases"

    supplier_name: Mapped[str] = mapped_column(String(255), nullable=False)

    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    # pending / received / cancelled, owned by the purchasing workflow
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list[PurchaseItem]] = relationship(
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseItem.id",
    )

    @property
    def total(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))

    def __repr__(self) -> str:
        return f"<Purchase {self.id} {self.supplier_name!r} status={self.status}>"


class PurchaseItem(TrackedBase):
    """
    One purchased line.

    ``product_id`` may be null for free-text lines that were not matched
    to a catalogue product; those lines carry no stock effect.
    """

    __tablename__ = "purchase_items"

    purchase_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("purchases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=True,
    )

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True)

    quantity: Mapped[int] = mapped_column(nullable=False)

    purchase_price: Mapped[Decimal] = mapped_column(nullable=False)

    total_price: Mapped[Decimal] = mapped_column(nullable=False)

    purchase: Mapped[Purchase] = relationship(back_populates="items")

    product: Mapped[Product | None] = relationship()
