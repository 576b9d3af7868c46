"""Tests for ORM-level immutability of ledger rows and journal entries."""

import pytest

from inventory_kernel.db.immutability import (
    immutability_listeners_registered,
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.services.ledger_service import StockLedger


@pytest.fixture
def adjustment(service, stocked_product):
    return service.create_adjustment(stocked_product, 3, "damage", "pecah")


class TestStockMovementImmutability:

    def test_update_blocked(self, session, clock, make_product):
        product = make_product()
        movement = StockLedger(session, clock).append(product.id, "purchase", 5)

        movement.notes = "edited"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "StockMovement"
        assert "notes" in exc_info.value.reason

    def test_delete_blocked(self, session, clock, make_product):
        product = make_product()
        movement = StockLedger(session, clock).append(product.id, "purchase", 5)

        session.delete(movement)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_violation_is_logged(self, session, clock, make_product, captured_logs):
        product = make_product()
        movement = StockLedger(session, clock).append(product.id, "purchase", 5)

        movement.quantity = 500
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        record = next(r for r in captured_logs() if r["message"] == "immutability_violation_blocked")
        assert record["level"] == "ERROR"
        assert record["invariant"] == "ledger_immutability"


class TestAdjustmentImmutability:

    def test_notes_are_editable(self, session, adjustment):
        adjustment.adjustment.notes = "foto terlampir"

        session.flush()

    def test_recorded_fields_blocked(self, session, adjustment):
        adjustment.adjustment.quantity_change = -30

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert "quantity_change" in exc_info.value.reason

    def test_delete_blocked(self, session, adjustment):
        session.delete(adjustment.adjustment)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestListenerRegistration:

    def test_registered_for_the_suite(self):
        assert immutability_listeners_registered()

    def test_unregister_and_register_again(self):
        unregister_immutability_listeners()
        try:
            assert not immutability_listeners_registered()
        finally:
            register_immutability_listeners()

        assert immutability_listeners_registered()

    def test_register_is_idempotent(self):
        register_immutability_listeners()
        register_immutability_listeners()

        assert immutability_listeners_registered()
