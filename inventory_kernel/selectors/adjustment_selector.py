"""
Module: inventory_kernel.selectors.adjustment_selector
Responsibility: Read-side queries over the adjustment journal.
Architecture position: Kernel > Selectors.

Standard listings are restricted to journaled entries (journal_number set).
Legacy rows with a null number are only returned when ``with_journal=False``
is asked for explicitly.
"""

from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import select

from inventory_kernel.domain.movement_types import MovementType
from inventory_kernel.models.adjustment import InventoryAdjustment
from inventory_kernel.selectors.base import BaseSelector


class AdjustmentSelector(BaseSelector):
    """Selector for adjustment journal listings."""

    def by_journal_number(self, journal_number: str) -> InventoryAdjustment | None:
        return self.session.execute(
            select(InventoryAdjustment).where(
                InventoryAdjustment.journal_number == journal_number
            )
        ).scalar_one_or_none()

    def list_entries(
        self,
        *,
        with_journal: bool = True,
        product_id: int | None = None,
        types: Sequence[MovementType | str] | None = None,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[InventoryAdjustment]:
        """
        Journal entries, newest first.

        Args:
            with_journal: Only officially numbered entries (default).
            product_id: Restrict to one product.
            types: Restrict to these adjustment types.
            date_from: Inclusive start (date = whole business day).
            date_to: Inclusive end.
            search: Substring of the journal number or the reason.
            limit: Maximum rows.
        """
        stmt = select(InventoryAdjustment)
        if with_journal:
            stmt = stmt.where(InventoryAdjustment.journal_number.is_not(None))
        if product_id is not None:
            stmt = stmt.where(InventoryAdjustment.product_id == product_id)
        if types:
            stmt = stmt.where(
                InventoryAdjustment.type.in_([MovementType.parse(t).value for t in types])
            )
        for clause in self._date_range(InventoryAdjustment.created_at, date_from, date_to):
            stmt = stmt.where(clause)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                InventoryAdjustment.journal_number.ilike(pattern)
                | InventoryAdjustment.reason.ilike(pattern)
            )
        stmt = stmt.order_by(
            InventoryAdjustment.created_at.desc(), InventoryAdjustment.id.desc()
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())
