"""
Kernel Invariants Contract.

These invariants are structural law.  They are hardcoded in the ledger,
the reconciliation service, the immutability listeners and the schema's
check constraints.  No configuration value may switch them off.

This module exists solely to declare these invariants explicitly.  The
enforcement is distributed across StockLedger, InventorySnapshotService,
AdjustmentJournal, SequenceService and the immutability listeners.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    LEDGER_SNAPSHOT_CONSISTENCY = "ledger_snapshot_consistency"
    """After every committed operation, a product's snapshot quantity
    equals the sum of its ledger quantities."""

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """No ledger row has quantity_after < 0 and no snapshot goes below 0.
    Enforced by reconciliation validation and DB check constraints."""

    RUNNING_BALANCE = "running_balance"
    """Every ledger row satisfies quantity_after = quantity_before +
    quantity.  Enforced by StockLedger.append and a DB check constraint."""

    LEDGER_IMMUTABILITY = "ledger_immutability"
    """Stock movements are append-only.  Enforced by ORM listeners
    (inventory_kernel.db.immutability)."""

    JOURNAL_NUMBER_UNIQUENESS = "journal_number_uniqueness"
    """No two adjustments share a journal number.  Enforced by the locked
    per-day counter in SequenceService and a unique constraint."""

    ADJUSTMENT_PAIRING = "adjustment_pairing"
    """Every journal entry has exactly one ledger row with matching
    before/change/after.  Enforced by AdjustmentCommand execution."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "inventory_services",
    "inventory_config",
)
