"""
Module: inventory_kernel.models.transaction
Responsibility: ORM models for point-of-sale transactions
    (Transaction, TransactionDetail).
Architecture position: Kernel > Models.

Transactions are written by the cashier screens.  The stock core reads
their detail lines to append ``sale`` (and, on refund, ``return``) ledger
rows and never modifies them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.product import Product


class Transaction(TrackedBase):
    """A completed sale at the till."""

    __tablename__ = "transactions"

    invoice: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    cashier_id: Mapped[int | None] = mapped_column(nullable=True)

    grand_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    details: Mapped[list[TransactionDetail]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionDetail.id",
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.id} {self.invoice}>"


class TransactionDetail(TrackedBase):
    """
    One sold line.

    ``price`` is the line total after discount, not the unit price.
    """

    __tablename__ = "transaction_details"

    transaction_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=False,
    )

    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True)

    quantity: Mapped[int] = mapped_column(nullable=False)

    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    price: Mapped[Decimal] = mapped_column(nullable=False)

    transaction: Mapped[Transaction] = relationship(back_populates="details")

    product: Mapped[Product] = relationship()
