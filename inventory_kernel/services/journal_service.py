"""
AdjustmentJournal -- journal numbering and paired journal/ledger writes.

Responsibility:
    Generates ``<prefix><YYYYMMDD><seq>`` journal numbers and executes an
    AdjustmentCommand as one unit: the journal entry and its ledger row.

Architecture position:
    Kernel > Services.  Called by StockReconciliationService, which holds
    the product lock and owns the transaction.

Invariants enforced:
    - Sequence resets daily: each business date (in the configured time
      zone) has its own counter row in SequenceService.
    - The journal entry and the ledger row carry identical
      before/change/after and the same journal number.
    - The ledger row references the entry (reference_type="adjustment",
      reference_id=entry.id).

Failure modes:
    - IntegrityError on a duplicate journal number (a legacy row already
      holds it); the caller retries with the next number.

Audit relevance:
    ``adjustment_journaled`` is logged with the journal number, type and
    quantities for every entry.
"""

from datetime import date, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.commands import AdjustmentCommand
from inventory_kernel.domain.movement_types import ADJUSTMENT_TYPES, MovementType, ReferenceType
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.models.stock_movement import StockMovement
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import StockLedger
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


class AdjustmentJournal(BaseService):
    """
    Write-side access to ``inventory_adjustments``.

    Contract:
        ``generate_number`` allocates from a locked per-day counter;
        ``record`` writes the entry and its ledger row with that number.

    Non-goals:
        - Does not validate stock; AdjustmentCommand already did.
        - Does not update snapshots or the product mirror.
    """

    DEFAULT_PREFIX = "ADJ"

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        prefix: str = DEFAULT_PREFIX,
        sequence_width: int = 4,
        tz: tzinfo | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._prefix = prefix
        self._width = sequence_width
        self._tz = tz or timezone.utc
        self._sequences = SequenceService(session)
        self._ledger = StockLedger(session, self._clock)

    @staticmethod
    def labels() -> dict[str, str]:
        """Journal type -> display label."""
        return {t.value: t.journal_label for t in MovementType if t in ADJUSTMENT_TYPES}

    def business_date(self) -> date:
        return self._clock.today(self._tz)

    def sequence_name(self, day: date) -> str:
        return f"{self._prefix}:{day:%Y%m%d}"

    def highest_sequence(self, day: date) -> int:
        """Largest sequence suffix among the journal numbers stored for ``day``."""
        stem = f"{self._prefix}{day:%Y%m%d}"
        numbers = self.session.scalars(
            select(InventoryAdjustment.journal_number).where(
                InventoryAdjustment.journal_number.like(f"{stem}%")
            )
        )
        suffixes = [int(n[len(stem):]) for n in numbers if n[len(stem):].isdigit()]
        return max(suffixes, default=0)

    def generate_number(self) -> str:
        """Next journal number for today, e.g. ``ADJ202601040001``.

        The counter never hands out a sequence at or below one already
        stored for the day, whoever wrote it.
        """
        day = self.business_date()
        seq = self._sequences.next_value(
            self.sequence_name(day), at_least=self.highest_sequence(day)
        )
        return f"{self._prefix}{day:%Y%m%d}{seq:0{self._width}d}"

    def record(
        self, command: AdjustmentCommand, journal_number: str
    ) -> tuple[InventoryAdjustment, StockMovement]:
        """
        Write the journal entry, then its paired ledger row.

        Returns:
            (entry, movement), both flushed.
        """
        entry = InventoryAdjustment(
            journal_number=journal_number,
            product_id=command.product_id,
            user_id=command.user_id,
            type=command.movement_type.value,
            quantity_before=command.quantity_before,
            quantity_change=command.quantity_change,
            quantity_after=command.quantity_after,
            reason=command.reason,
            notes=command.notes,
            created_at=self._clock.now_utc(),
        )
        self.session.add(entry)
        self.session.flush()

        movement = self._ledger.append(
            product_id=command.product_id,
            movement_type=command.movement_type,
            quantity=command.quantity_change,
            reference_type=ReferenceType.ADJUSTMENT,
            reference_id=entry.id,
            user_id=command.user_id,
            notes=command.reason or command.notes,
            journal_number=journal_number,
        )
        assert movement.quantity_before == entry.quantity_before, (
            "ledger moved between planning and recording the adjustment"
        )

        logger.info(
            "adjustment_journaled",
            extra={
                "journal_number": journal_number,
                "adjustment_id": entry.id,
                "movement_id": movement.id,
                "product_id": command.product_id,
                "type": command.movement_type.value,
                "quantity_before": entry.quantity_before,
                "quantity_change": entry.quantity_change,
                "quantity_after": entry.quantity_after,
            },
        )
        return entry, movement
