"""Tests for InventorySnapshotService."""

import pytest

from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.services.ledger_service import StockLedger
from inventory_kernel.services.snapshot_service import InventorySnapshotService


@pytest.fixture
def snapshots(session):
    return InventorySnapshotService(session)


class TestGetOrCreate:

    def test_seeds_from_legacy_stock(self, snapshots, make_product):
        product = make_product(stock=12)

        snapshot = snapshots.get_or_create(product)

        assert snapshot.product_id == product.id
        assert snapshot.barcode == product.barcode
        assert snapshot.quantity == 12

    def test_negative_legacy_stock_floors_at_zero(self, snapshots, make_product):
        product = make_product(stock=-3)

        assert snapshots.get_or_create(product).quantity == 0

    def test_idempotent(self, session, snapshots, make_product):
        product = make_product(stock=4)

        first = snapshots.get_or_create(product)
        product.stock = 99
        second = snapshots.get_or_create(product)

        assert first.id == second.id
        assert second.quantity == 4

    def test_logs_creation(self, snapshots, make_product, captured_logs):
        product = make_product()

        snapshots.get_or_create(product)
        snapshots.get_or_create(product)

        created = [r for r in captured_logs() if r["message"] == "snapshot_created"]
        assert len(created) == 1


class TestApplyDelta:

    def test_adds_signed_delta(self, snapshots, make_product):
        snapshot = snapshots.get_or_create(make_product(stock=10))

        snapshots.apply_delta(snapshot, -4)
        snapshots.apply_delta(snapshot, 7)

        assert snapshot.quantity == 13

    def test_clamps_at_zero_and_warns(self, snapshots, make_product, captured_logs):
        snapshot = snapshots.get_or_create(make_product(stock=2))

        snapshots.apply_delta(snapshot, -5)

        assert snapshot.quantity == 0
        warning = next(r for r in captured_logs() if r["message"] == "snapshot_clamped_at_zero")
        assert warning["level"] == "WARNING"
        assert warning["delta"] == -5


class TestSyncFromLedger:

    def test_overwrites_with_ledger_sum(self, session, clock, snapshots, make_product):
        product = make_product(stock=40)
        ledger = StockLedger(session, clock)
        ledger.append(product.id, "purchase", 15)
        ledger.append(product.id, "sale", -6)

        snapshot = snapshots.sync_from_ledger(product)

        assert snapshot.quantity == 9
        assert InventorySelector(session).get(product.id).quantity == 9

    def test_creates_missing_snapshot(self, session, clock, snapshots, make_product):
        product = make_product()
        StockLedger(session, clock).append(product.id, "adjustment_in", 3)

        snapshots.sync_from_ledger(product)

        assert InventorySelector(session).get(product.id).quantity == 3

    def test_set_quantity_floors_at_zero(self, snapshots, make_product):
        snapshot = snapshots.get_or_create(make_product(stock=5))

        snapshots.set_quantity(snapshot, -1)

        assert snapshot.quantity == 0
