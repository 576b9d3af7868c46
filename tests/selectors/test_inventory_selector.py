"""Tests for InventorySelector scopes."""

import pytest

from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.services.snapshot_service import InventorySnapshotService


@pytest.fixture
def selector(session):
    return InventorySelector(session)


@pytest.fixture
def shelf(session, make_product):
    """Snapshots at quantities 0, 1, 10, 11."""
    snapshots = InventorySnapshotService(session)
    products = {}
    for quantity in (0, 1, 10, 11):
        product = make_product(stock=quantity)
        snapshots.get_or_create(product)
        products[quantity] = product
    return products


def test_low_stock_is_above_zero_up_to_threshold(selector, shelf):
    rows = selector.low_stock(threshold=10)

    assert [r.product_id for r in rows] == [shelf[1].id, shelf[10].id]


def test_out_of_stock(selector, shelf):
    assert [r.product_id for r in selector.out_of_stock()] == [shelf[0].id]


def test_available(selector, shelf):
    assert {r.product_id for r in selector.available()} == {shelf[1].id, shelf[10].id, shelf[11].id}


def test_get_missing(selector, make_product):
    assert selector.get(make_product().id) is None


def test_snapshot_back_reference(session, selector, shelf):
    snapshot = selector.get(shelf[11].id)

    assert snapshot.product.inventory is snapshot


def test_summary_batches_cover_every_product(selector, make_product):
    for _ in range(7):
        make_product(stock=2, sell_price="1000")

    summary = selector.summary(batch_size=3)

    assert summary.total_products == 7
    assert summary.low_stock_count == 7
