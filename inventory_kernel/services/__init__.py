"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.journal_service import AdjustmentJournal
from inventory_kernel.services.ledger_service import StockLedger
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.snapshot_service import InventorySnapshotService

__all__ = [
    "AdjustmentJournal",
    "InventorySnapshotService",
    "SequenceService",
    "StockLedger",
]
