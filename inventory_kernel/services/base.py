"""
Module: inventory_kernel.services.base
Responsibility: Shared constructor for the kernel's write-side services
    (StockLedger, InventorySnapshotService, AdjustmentJournal).
Architecture position: Kernel > Services.

Kernel services flush and never commit or roll back.  The reconciliation
service above them owns the transaction, which is how a ledger row, its
snapshot update, journal entry and product mirror land together or not at
all.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Holds the caller's session; subclasses only ever ``flush()`` it."""

    def __init__(self, session: Session):
        self.session = session
