"""
InventorySnapshotService -- maintains the per-product quantity cache.

Responsibility:
    Lazily creates snapshots, applies signed deltas, and rebuilds a
    snapshot from the ledger for drift repair.

Architecture position:
    Kernel > Services.  Called only by StockReconciliationService.

Invariants enforced:
    - One snapshot per product; concurrent creation is resolved through a
      savepoint and the unique constraint on product_id.
    - quantity never goes below zero.  The clamp is a last-resort guard:
      the reconciliation service rejects overdrawing operations before
      they get here, so a clamp means validation was bypassed and is
      logged as ``snapshot_clamped_at_zero`` at WARNING.

Failure modes:
    - IntegrityError propagated if the snapshot row cannot be created or
      re-read after a creation race.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import InventorySnapshot
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.base import BaseService

logger = get_logger("services.snapshot")


class InventorySnapshotService(BaseService):
    """Write-side access to ``inventories``."""

    def _find(self, product_id: int) -> InventorySnapshot | None:
        return self.session.execute(
            select(InventorySnapshot)
            .where(InventorySnapshot.product_id == product_id)
            .with_for_update()
        ).scalar_one_or_none()

    def get_or_create(self, product: Product) -> InventorySnapshot:
        """
        Return the product's snapshot, creating it if absent.

        A new snapshot starts from the product's legacy ``stock`` field
        (floored at zero).  Idempotent.
        """
        snapshot = self._find(product.id)
        if snapshot is not None:
            return snapshot

        savepoint = self.session.begin_nested()
        try:
            snapshot = InventorySnapshot(
                product_id=product.id,
                barcode=product.barcode,
                quantity=max(product.stock or 0, 0),
            )
            self.session.add(snapshot)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.debug("snapshot_create_race_retry", extra={"product_id": product.id})
            snapshot = self._find(product.id)
            if snapshot is None:
                raise
            return snapshot

        logger.info(
            "snapshot_created",
            extra={"product_id": product.id, "quantity": snapshot.quantity},
        )
        return snapshot

    def apply_delta(self, snapshot: InventorySnapshot, delta: int) -> InventorySnapshot:
        """Add a signed delta, clamping the result at zero."""
        new_quantity = snapshot.quantity + delta
        if new_quantity < 0:
            logger.warning(
                "snapshot_clamped_at_zero",
                extra={
                    "product_id": snapshot.product_id,
                    "quantity": snapshot.quantity,
                    "delta": delta,
                },
            )
            new_quantity = 0
        snapshot.quantity = new_quantity
        self.session.flush()
        return snapshot

    def set_quantity(self, snapshot: InventorySnapshot, quantity: int) -> InventorySnapshot:
        """Overwrite the cached quantity (floored at zero)."""
        snapshot.quantity = max(quantity, 0)
        self.session.flush()
        return snapshot

    def sync_from_ledger(self, product: Product) -> InventorySnapshot:
        """Recompute the snapshot from the ledger sum and overwrite it."""
        snapshot = self.get_or_create(product)
        ledger_quantity = MovementSelector(self.session).current_stock(product.id)
        if snapshot.quantity != ledger_quantity:
            logger.info(
                "snapshot_resynced",
                extra={
                    "product_id": product.id,
                    "from_quantity": snapshot.quantity,
                    "to_quantity": ledger_quantity,
                },
            )
        return self.set_quantity(snapshot, ledger_quantity)
