"""Tests for MovementSelector scopes and reference resolution."""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from inventory_kernel.domain.movement_types import Direction, MovementType, ReferenceType
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.purchase import Purchase
from inventory_kernel.models.transaction import Transaction
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.services.ledger_service import StockLedger

JAKARTA = ZoneInfo("Asia/Jakarta")


@pytest.fixture
def selector(session):
    return MovementSelector(session, JAKARTA)


@pytest.fixture
def busy_product(service, clock, make_product, make_purchase, make_transaction):
    """purchase +20, sale -3, adjustment_in +2, damage -1, correction to 10."""
    product = make_product()
    service.process_purchase(make_purchase([(product, 20, "1000")]))
    clock.advance(60)
    service.process_transaction(make_transaction([(product, 3, "12000")]))
    clock.advance(60)
    service.create_adjustment(product, 2, "adjustment_in", "found")
    clock.advance(60)
    service.create_adjustment(product, 1, "damage", "pecah")
    clock.advance(60)
    service.stock_correction(product, 10, "opname")
    return product


class TestDirectionScopes:

    def test_incoming(self, selector, busy_product):
        rows = selector.filter(product_id=busy_product.id, direction=Direction.INCOMING)

        assert [r.movement_type for r in rows] == ["purchase", "adjustment_in"]
        assert all(r.is_incoming for r in rows)

    def test_outgoing(self, selector, busy_product):
        rows = selector.filter(product_id=busy_product.id, direction="outgoing")

        assert [r.movement_type for r in rows] == ["sale", "damage"]
        assert all(r.is_outgoing for r in rows)

    def test_direction_is_static_not_sign_based(self, selector, busy_product):
        # The correction here is negative but belongs to neither side
        rows = selector.filter(product_id=busy_product.id, direction=Direction.SET)

        assert [r.quantity for r in rows] == [-8]
        assert not rows[0].is_incoming
        assert not rows[0].is_outgoing

    def test_totals_by_direction(self, selector, busy_product):
        assert selector.totals_by_direction(busy_product.id) == (22, 4)


class TestOtherScopes:

    def test_by_types(self, selector, busy_product):
        rows = selector.filter(
            product_id=busy_product.id,
            movement_types=[MovementType.SALE, "correction"],
        )

        assert [r.movement_type for r in rows] == ["sale", "correction"]

    def test_with_journal(self, selector, busy_product):
        rows = selector.filter(product_id=busy_product.id, with_journal=True)

        assert [r.journal_number for r in rows] == [
            "ADJ202601040001",
            "ADJ202601040002",
            "ADJ202601040003",
        ]

    def test_newest_first_and_limit(self, selector, busy_product):
        rows = selector.filter(product_id=busy_product.id, newest_first=True, limit=2)

        assert [r.movement_type for r in rows] == ["correction", "damage"]

    def test_datetime_bounds_are_inclusive(self, selector, busy_product):
        start = datetime(2026, 1, 4, 3, 1, tzinfo=timezone.utc)
        end = datetime(2026, 1, 4, 3, 3, tzinfo=timezone.utc)

        rows = selector.filter(product_id=busy_product.id, date_from=start, date_to=end)

        assert [r.movement_type for r in rows] == ["sale", "adjustment_in", "damage"]

    def test_naive_datetime_taken_as_business_time(self, selector, busy_product):
        # 10:02 Jakarta == 03:02 UTC
        rows = selector.filter(
            product_id=busy_product.id, date_from=datetime(2026, 1, 4, 10, 2)
        )

        assert [r.movement_type for r in rows] == ["adjustment_in", "damage", "correction"]

    def test_date_outside_range(self, selector, busy_product):
        assert selector.filter(product_id=busy_product.id, date_to=date(2026, 1, 3)) == []

    def test_query_is_composable(self, session, selector, busy_product):
        stmt = selector.query(product_id=busy_product.id, direction="incoming")

        rows = list(session.execute(stmt).scalars())

        assert len(rows) == 2


class TestBulkReads:

    def test_stock_by_product(self, session, clock, selector, make_product):
        ledger = StockLedger(session, clock)
        a = make_product()
        b = make_product()
        untouched = make_product()
        ledger.append(a.id, "purchase", 4)
        ledger.append(b.id, "purchase", 9)
        ledger.append(b.id, "sale", -2)

        assert selector.stock_by_product([a.id, b.id, untouched.id]) == {a.id: 4, b.id: 7}

    def test_average_buy_prices(self, session, clock, selector, make_product):
        ledger = StockLedger(session, clock)
        a = make_product()
        b = make_product()
        ledger.append(a.id, "purchase", 2, unit_price=Decimal("1000"))
        ledger.append(a.id, "purchase", 2, unit_price=Decimal("2000"))

        assert selector.average_buy_prices([a.id, b.id]) == {
            a.id: Decimal("1500.00"),
            b.id: Decimal("0"),
        }


class TestReferences:

    def test_resolves_each_reference_kind(
        self, service, selector, stocked_product, make_transaction
    ):
        transaction = make_transaction([(stocked_product, 1, "3500")])
        service.process_transaction(transaction)
        service.create_adjustment(stocked_product, 1, "return", "retur")

        purchase_row, sale_row, adjustment_row = selector.history(stocked_product.id)

        assert isinstance(selector.get_reference(purchase_row), Purchase)
        assert selector.get_reference(sale_row).id == transaction.id
        assert isinstance(selector.get_reference(sale_row), Transaction)
        assert isinstance(selector.get_reference(adjustment_row), InventoryAdjustment)

    def test_row_without_reference(self, session, clock, selector, make_product):
        product = make_product()
        movement = StockLedger(session, clock).append(product.id, "adjustment_in", 1)

        assert selector.get_reference(movement) is None

    def test_for_reference(self, service, selector, make_product, make_purchase):
        a = make_product()
        b = make_product()
        purchase = make_purchase([(a, 1, "100"), (b, 2, "200")])
        service.process_purchase(purchase)

        rows = selector.for_reference(ReferenceType.PURCHASE, purchase.id)

        assert sorted(r.product_id for r in rows) == sorted([a.id, b.id])

    def test_labels(self, selector, busy_product):
        labels = [r.label for r in selector.history(busy_product.id)]

        assert labels == ["Pembelian", "Penjualan", "Adjustment Masuk", "Barang Rusak", "Koreksi"]
