"""Tests for StockLedger: the append-only write path and its folds."""

from decimal import Decimal

import pytest

from inventory_kernel.domain.movement_types import MovementType, ReferenceType
from inventory_kernel.exceptions import InvalidMovementTypeError, InvalidQuantityError
from inventory_kernel.services.ledger_service import StockLedger


@pytest.fixture
def ledger(session, clock):
    return StockLedger(session, clock)


class TestAppend:

    def test_running_balance(self, ledger, make_product):
        product = make_product()

        first = ledger.append(product.id, MovementType.PURCHASE, 10, unit_price=Decimal("1000"))
        second = ledger.append(product.id, MovementType.SALE, -4)
        third = ledger.append(product.id, MovementType.CORRECTION, -1)

        assert (first.quantity_before, first.quantity_after) == (0, 10)
        assert (second.quantity_before, second.quantity_after) == (10, 6)
        assert (third.quantity_before, third.quantity_after) == (6, 5)

    def test_total_price_defaults_from_unit_price(self, ledger, make_product):
        product = make_product()

        movement = ledger.append(product.id, "purchase", 12, unit_price=Decimal("2500"))

        assert movement.total_price == Decimal("30000")

    def test_explicit_total_price_kept(self, ledger, make_product):
        product = make_product()

        movement = ledger.append(
            product.id, "purchase", 3, unit_price=Decimal("1000"), total_price=Decimal("2900")
        )

        assert movement.total_price == Decimal("2900")

    def test_created_at_comes_from_clock(self, ledger, make_product, clock):
        product = make_product()
        clock.advance(90)

        movement = ledger.append(product.id, "adjustment_in", 1)

        assert movement.created_at == clock.now_utc()

    def test_reference_fields(self, ledger, make_product):
        product = make_product()
        ledger.append(product.id, "purchase", 5)

        movement = ledger.append(
            product.id,
            "sale",
            -1,
            reference_type=ReferenceType.TRANSACTION,
            reference_id=41,
            user_id=9,
            notes="Sale invoice: TRX-1",
        )

        assert movement.reference_type == "transaction"
        assert movement.reference_id == 41
        assert movement.user_id == 9
        assert (movement.quantity_before, movement.quantity_after) == (5, 4)

    @pytest.mark.parametrize(
        "movement_type, quantity",
        [
            ("purchase", -1),
            ("purchase", 0),
            ("return", -2),
            ("sale", 3),
            ("damage", 0),
            ("adjustment_out", 1),
        ],
    )
    def test_sign_must_match_direction(self, ledger, make_product, movement_type, quantity):
        product = make_product()

        with pytest.raises(InvalidQuantityError):
            ledger.append(product.id, movement_type, quantity)

    @pytest.mark.parametrize("quantity", [-3, 0, 3])
    def test_correction_takes_any_sign(self, ledger, make_product, quantity):
        product = make_product()
        ledger.append(product.id, "purchase", 5)

        movement = ledger.append(product.id, "correction", quantity)

        assert movement.quantity_after == 5 + quantity

    def test_non_integer_quantity_rejected(self, ledger, make_product):
        product = make_product()

        with pytest.raises(InvalidQuantityError):
            ledger.append(product.id, "purchase", 1.5)

    def test_unknown_type_rejected(self, ledger, make_product):
        product = make_product()

        with pytest.raises(InvalidMovementTypeError):
            ledger.append(product.id, "stolen", -1)


class TestReads:

    def test_current_stock_without_rows_is_zero(self, ledger, make_product):
        assert ledger.current_stock(make_product().id) == 0

    def test_current_stock_sums_all_types(self, ledger, make_product):
        product = make_product()
        ledger.append(product.id, "purchase", 20)
        ledger.append(product.id, "sale", -5)
        ledger.append(product.id, "return", 2)
        ledger.append(product.id, "damage", -1)
        ledger.append(product.id, "correction", -6)

        assert ledger.current_stock(product.id) == 10

    def test_average_excludes_non_purchase_inbound(self, ledger, make_product):
        product = make_product()
        ledger.append(product.id, "purchase", 10, unit_price=Decimal("1000"))
        ledger.append(product.id, "purchase", 30, unit_price=Decimal("3000"))
        ledger.append(product.id, "adjustment_in", 100, unit_price=Decimal("1"))
        ledger.append(product.id, "return", 5, unit_price=Decimal("9999"))

        assert ledger.average_buy_price(product.id) == Decimal("2500.00")

    def test_average_rounds_half_up(self, ledger, make_product):
        product = make_product()
        ledger.append(product.id, "purchase", 3, total_price=Decimal("1000"))

        assert ledger.average_buy_price(product.id) == Decimal("333.33")

    def test_average_without_purchases_is_zero(self, ledger, make_product):
        product = make_product()
        ledger.append(product.id, "adjustment_in", 4)

        assert ledger.average_buy_price(product.id) == Decimal("0.00")

    def test_rows_for_other_products_ignored(self, ledger, make_product, clock):
        mine = make_product()
        other = make_product()
        ledger.append(other.id, "purchase", 99)
        clock.advance(60)
        ledger.append(mine.id, "purchase", 1)

        assert ledger.current_stock(mine.id) == 1
