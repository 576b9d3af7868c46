"""
Module: inventory_kernel.models.product
Responsibility: ORM models for the product directory (Category, Product).
Architecture position: Kernel > Models.  May import from db/base.py only.

The product directory is owned by catalogue screens outside this package.
The stock core reads products and writes exactly one field: the legacy
``stock`` column, which mirrors the ledger total after every operation.

Invariants enforced:
    - barcode is unique (DB unique constraint).
    - stock is only written by StockReconciliationService.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.inventory import InventorySnapshot


class Category(TrackedBase):
    """Product grouping used by catalogue screens and reports."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    products: Mapped[list[Product]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<Category {self.id} {self.name!r}>"


class Product(TrackedBase):
    """
    A sellable item.

    Contract:
        Created and edited by catalogue collaborators.  The stock core
        references products by id and never changes anything except the
        legacy ``stock`` mirror.

    Non-goals:
        - ``stock`` is NOT the source of truth; the ledger is.
    """

    __tablename__ = "products"

    barcode: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    category_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("categories.id"),
        nullable=True,
    )

    buy_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    sell_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Legacy denormalized stock, mirrored from the ledger
    stock: Mapped[int] = mapped_column(nullable=False, default=0)

    category: Mapped[Category | None] = relationship(back_populates="products")

    inventory: Mapped[InventorySnapshot | None] = relationship(
        back_populates="product",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.barcode} stock={self.stock}>"
