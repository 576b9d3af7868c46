"""
Module: inventory_kernel.services.sequence_service
Responsibility: Hand out gap-free, strictly increasing integers per named
    sequence.  AdjustmentJournal keeps one sequence per business day
    (``ADJ:20260104``) and turns the value into the journal number suffix.
Architecture position: Kernel > Services.  Never commits.

Invariants enforced:
    - The next value comes from a counter row read under
      ``SELECT ... FOR UPDATE``; counting today's journal entries and adding
      one is not used anywhere.
    - A value is consumed only if the caller's transaction commits.

Failure modes:
    - Two writers creating the same counter at once: the loser's insert
      fails inside a savepoint and it continues with the winner's row.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """Locked counter rows keyed by sequence name."""

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        stmt = (
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._session.scalars(stmt).one_or_none()

    def _create(self, name: str) -> SequenceCounter | None:
        """Insert a zeroed counter; None if a concurrent writer beat us to it."""
        counter = SequenceCounter(name=name, current_value=0)
        try:
            with self._session.begin_nested():
                self._session.add(counter)
        except IntegrityError:
            logger.debug("sequence_counter_race", extra={"sequence_name": name})
            return None
        return counter

    def next_value(self, sequence_name: str, at_least: int = 0) -> int:
        """
        Increment the named counter and return the new value (>= 1).

        ``at_least`` is the highest value already in use outside the
        counter (e.g. journal numbers imported from another system); the
        counter is moved up to it first so the result is always above it.
        """
        counter = self._lock(sequence_name) or self._create(sequence_name)
        if counter is None:
            counter = self._lock(sequence_name)
            if counter is None:
                raise RuntimeError(f"sequence counter {sequence_name!r} vanished")

        if counter.current_value < at_least:
            logger.info(
                "sequence_fast_forwarded",
                extra={
                    "sequence_name": sequence_name,
                    "from_value": counter.current_value,
                    "value": at_least,
                },
            )
            counter.current_value = at_least
        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Last value handed out, or None for a sequence never used."""
        return self._session.scalars(
            select(SequenceCounter.current_value).where(SequenceCounter.name == sequence_name)
        ).one_or_none()

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """Force a counter to ``value`` (tests and data migration only)."""
        counter = self._lock(sequence_name)
        if counter is None:
            self._session.add(SequenceCounter(name=sequence_name, current_value=value))
        else:
            counter.current_value = value
        self._session.flush()
