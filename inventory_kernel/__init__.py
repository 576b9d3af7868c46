"""
Inventory Kernel - stock ledger and reconciliation core.

An append-only stock movement ledger with:
- Derived current stock and average buy price
- Per-product inventory snapshots kept in step with the ledger
- Journaled manual adjustments with daily sequential numbers
- Immutable ledger rows (corrections are new rows)
"""

__version__ = "0.1.0"
