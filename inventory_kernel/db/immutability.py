"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The stock ledger is the source of truth for quantity and cost.  If a
movement could be edited, the running balances (quantity_before/after) of
every later row would silently stop adding up, and average buy price would
change retroactively.  Mistakes are therefore corrected with NEW rows
(correction movements, purchase reversals), never by editing old ones.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable          | Mutable fields
----------------------|-------------------------|-------------------------
StockMovement         | ALWAYS (from creation)  | none
InventoryAdjustment   | ALWAYS (from creation)  | notes, updated_at

===============================================================================
USAGE
===============================================================================

Called once at application startup, after models are imported:

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS AND RESET SCRIPTS ONLY):

    unregister_immutability_listeners()
    # ... delete ledger rows ...
    register_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.invariants import KernelInvariant
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.stock_movement import StockMovement

logger = get_logger("db.immutability")

ADJUSTMENT_MUTABLE_FIELDS = frozenset({"notes", "updated_at"})


def _block(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
            "invariant": KernelInvariant.LEDGER_IMMUTABILITY.value,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _changed_fields(target) -> list[str]:
    changed = []
    for attr in inspect(target).mapper.column_attrs:
        if get_history(target, attr.key).has_changes():
            changed.append(attr.key)
    return changed


def _check_stock_movement_immutability(mapper, connection, target):
    """Stock movements are append-only; any UPDATE is blocked."""
    changed = _changed_fields(target)
    _block(
        "StockMovement",
        target.id,
        "UPDATE",
        f"ledger rows are append-only (attempted to change: {', '.join(changed) or 'unknown'})",
    )


def _check_stock_movement_delete(mapper, connection, target):
    """Stock movements are never deleted outside reset contexts."""
    _block("StockMovement", target.id, "DELETE", "ledger rows cannot be deleted")


def _check_adjustment_immutability(mapper, connection, target):
    """Only notes may change on a journal entry."""
    forbidden = [f for f in _changed_fields(target) if f not in ADJUSTMENT_MUTABLE_FIELDS]
    if forbidden:
        _block(
            "InventoryAdjustment",
            target.id,
            "UPDATE",
            f"journal entries are immutable (attempted to change: {', '.join(forbidden)})",
        )


def _check_adjustment_delete(mapper, connection, target):
    """Journal entries are never deleted outside reset contexts."""
    _block(
        "InventoryAdjustment",
        target.id,
        "DELETE",
        "journal entries cannot be deleted",
    )


_LISTENERS = (
    (StockMovement, "before_update", _check_stock_movement_immutability),
    (StockMovement, "before_delete", _check_stock_movement_delete),
    (InventoryAdjustment, "before_update", _check_adjustment_immutability),
    (InventoryAdjustment, "before_delete", _check_adjustment_delete),
)


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are not added twice.
    """
    for target, event_name, listener_fn in _LISTENERS:
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests or reset scripts that must delete
    ledger history.
    """
    for target, event_name, listener_fn in _LISTENERS:
        _safe_remove_listener(target, event_name, listener_fn)


def immutability_listeners_registered() -> bool:
    """True when every listener is active."""
    return all(event.contains(t, n, fn) for t, n, fn in _LISTENERS)
