"""Tests for the clock abstraction and the value objects."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from inventory_kernel.domain.clock import DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    ConsistencyReport,
    SnapshotDrift,
    StockIssue,
    StockRequest,
    StockValidationResult,
)
from inventory_kernel.exceptions import InvalidQuantityError


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        clock = DeterministicClock()
        first = clock.now()

        assert clock.now() == first
        assert clock.tick() == first + timedelta(seconds=1)

    def test_requires_aware_datetime(self):
        with pytest.raises(ValueError):
            DeterministicClock(datetime(2026, 1, 4, 3, 0))

        clock = DeterministicClock()
        with pytest.raises(ValueError):
            clock.set_time(datetime(2026, 1, 4, 3, 0))

    def test_today_in_business_time_zone(self):
        clock = DeterministicClock(datetime(2026, 1, 4, 18, 0, tzinfo=timezone.utc))

        assert clock.today(timezone.utc) == date(2026, 1, 4)
        assert clock.today(ZoneInfo("Asia/Jakarta")) == date(2026, 1, 5)

    def test_now_utc_converts(self):
        jakarta = datetime(2026, 1, 4, 10, 0, tzinfo=ZoneInfo("Asia/Jakarta"))
        clock = DeterministicClock(jakarta)

        assert clock.now_utc() == datetime(2026, 1, 4, 3, 0, tzinfo=timezone.utc)
        assert clock.now_utc().tzinfo == timezone.utc


def test_system_clock_is_utc():
    assert SystemClock().now_utc().utcoffset() == timedelta(0)


class TestStockRequest:

    def test_coerce_mapping(self):
        request = StockRequest.coerce({"product_id": 3, "quantity": 2})

        assert request == StockRequest(product_id=3, quantity=2)

    def test_coerce_passthrough(self):
        request = StockRequest(product_id=3, quantity=0)

        assert StockRequest.coerce(request) is request

    @pytest.mark.parametrize("quantity", [-1, 2.5, None])
    def test_invalid_quantity(self, quantity):
        with pytest.raises(InvalidQuantityError):
            StockRequest(product_id=3, quantity=quantity)


def test_validation_result_messages():
    issue = StockIssue(
        product_id=1,
        product_name="Sabun",
        code="OUT_OF_STOCK",
        message="Stok produk 'Sabun' habis. Tidak dapat melakukan transaksi.",
        available=0,
        requested=2,
    )

    result = StockValidationResult(valid=False, errors=(issue,))

    assert result.messages == [issue.message]
    assert StockValidationResult(valid=True).messages == []


def test_consistency_report():
    missing = SnapshotDrift(
        product_id=1, barcode="899", ledger_quantity=4, snapshot_quantity=None, product_stock=4
    )

    assert missing.missing_snapshot
    assert not ConsistencyReport(products_checked=1, drifts=(missing,)).is_consistent
    assert ConsistencyReport(products_checked=5, drifts=()).is_consistent

