"""
Module: inventory_kernel.selectors.inventory_selector
Responsibility: Read-side queries over inventory snapshots: stock level
    scopes, the cross-product inventory summary, and drift detection
    between ledger, snapshot and the product mirror.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Summary quantities come from the snapshot, falling back to the
      product's legacy stock field for products never touched by the ledger.
    - Low stock means 0 < quantity <= threshold; out of stock means
      quantity <= 0.
    - Products are scanned in id-keyed batches, so memory stays bounded on
      large catalogues.
"""

from decimal import Decimal

from sqlalchemy import select

from inventory_kernel.domain.dtos import ConsistencyReport, InventorySummary, SnapshotDrift
from inventory_kernel.models.inventory import InventorySnapshot
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.movement_selector import MovementSelector


class InventorySelector(BaseSelector):
    """
    Selector for snapshot listings and aggregates.

    Guarantees:
        - ``summary`` values are Decimal with two places.
        - ``consistency_report`` never writes; repair goes through the
          reconciliation service's sync operations.
    """

    def get(self, product_id: int) -> InventorySnapshot | None:
        return self.session.execute(
            select(InventorySnapshot).where(InventorySnapshot.product_id == product_id)
        ).scalar_one_or_none()

    def low_stock(self, threshold: int = 10) -> list[InventorySnapshot]:
        return list(
            self.session.execute(
                select(InventorySnapshot)
                .where(InventorySnapshot.quantity > 0, InventorySnapshot.quantity <= threshold)
                .order_by(InventorySnapshot.quantity, InventorySnapshot.product_id)
            ).scalars()
        )

    def out_of_stock(self) -> list[InventorySnapshot]:
        return list(
            self.session.execute(
                select(InventorySnapshot)
                .where(InventorySnapshot.quantity <= 0)
                .order_by(InventorySnapshot.product_id)
            ).scalars()
        )

    def available(self) -> list[InventorySnapshot]:
        return list(
            self.session.execute(
                select(InventorySnapshot)
                .where(InventorySnapshot.quantity > 0)
                .order_by(InventorySnapshot.product_id)
            ).scalars()
        )

    def _product_batches(self, batch_size: int):
        """Yield (product, snapshot quantity or None) rows, batch by batch."""
        last_id = 0
        while True:
            rows = self.session.execute(
                select(Product, InventorySnapshot.quantity)
                .outerjoin(InventorySnapshot, InventorySnapshot.product_id == Product.id)
                .where(Product.id > last_id)
                .order_by(Product.id)
                .limit(batch_size)
            ).all()
            if not rows:
                return
            yield rows
            last_id = rows[-1][0].id

    def summary(self, low_stock_threshold: int = 10, batch_size: int = 100) -> InventorySummary:
        """Stock value at average cost and at sell price across all products."""
        movements = MovementSelector(self.session, self.tz)
        total_products = 0
        stock_value = Decimal("0")
        sell_value = Decimal("0")
        low = 0
        out = 0

        for rows in self._product_batches(batch_size):
            prices = movements.average_buy_prices(product.id for product, _ in rows)
            for product, snapshot_qty in rows:
                quantity = snapshot_qty if snapshot_qty is not None else product.stock
                total_products += 1
                stock_value += quantity * prices[product.id]
                sell_value += quantity * Decimal(product.sell_price or 0)
                if quantity <= 0:
                    out += 1
                elif quantity <= low_stock_threshold:
                    low += 1

        return InventorySummary(
            total_products=total_products,
            total_stock_value=stock_value.quantize(Decimal("0.01")),
            total_sell_value=sell_value.quantize(Decimal("0.01")),
            low_stock_count=low,
            out_of_stock_count=out,
        )

    def consistency_report(self, batch_size: int = 100) -> ConsistencyReport:
        """Products whose snapshot or legacy stock disagrees with the ledger."""
        movements = MovementSelector(self.session, self.tz)
        checked = 0
        drifts: list[SnapshotDrift] = []

        for rows in self._product_batches(batch_size):
            ledger = movements.stock_by_product(product.id for product, _ in rows)
            for product, snapshot_qty in rows:
                checked += 1
                ledger_qty = ledger.get(product.id, 0)
                snapshot_off = (
                    ledger_qty != 0 if snapshot_qty is None else snapshot_qty != ledger_qty
                )
                if snapshot_off or product.stock != ledger_qty:
                    drifts.append(
                        SnapshotDrift(
                            product_id=product.id,
                            barcode=product.barcode,
                            ledger_quantity=ledger_qty,
                            snapshot_quantity=snapshot_qty,
                            product_stock=product.stock,
                        )
                    )

        return ConsistencyReport(products_checked=checked, drifts=tuple(drifts))
