"""
Module: inventory_kernel.models.inventory
Responsibility: ORM model for the per-product inventory snapshot, a cached
    projection of the ledger total used for fast reads.
Architecture position: Kernel > Models.  Written only through
    ``InventorySnapshotService``.

Invariants enforced:
    - At most one snapshot per product (unique product_id).
    - quantity >= 0 (DB check constraint; the service clamps at zero).
    - After every committed reconciliation operation, quantity equals the
      ledger sum for the product.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import IdType, TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.product import Product


class InventorySnapshot(TrackedBase):
    """Current quantity cache for one product."""

    __tablename__ = "inventories"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_non_negative"),
    )

    product_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("products.id"),
        nullable=False,
        unique=True,
    )

    # Denormalized from Product for barcode lookups
    barcode: Mapped[str | None] = mapped_column(String(64), nullable=True)

    quantity: Mapped[int] = mapped_column(nullable=False, default=0)

    product: Mapped[Product] = relationship(back_populates="inventory")

    def __repr__(self) -> str:
        return f"<InventorySnapshot product={self.product_id} quantity={self.quantity}>"
