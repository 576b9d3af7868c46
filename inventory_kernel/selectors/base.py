"""
Module: inventory_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - Session ownership: the caller owns the session and its transaction
      scope, so a selector read inside a locked reconciliation operation sees
      that operation's own pending writes.

Failure modes:
    - NoResultFound / MultipleResultsFound where a query expects a specific
      cardinality.
"""

from abc import ABC
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from sqlalchemy import ColumnElement
from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs, ORM rows or computed results.  They MUST NOT mutate
        any data.

    Guarantees:
        - session is stored as a public attribute for subclass query use.
        - Date bounds are interpreted in ``tz`` and compared in UTC.
    """

    def __init__(self, session: Session, tz: tzinfo | None = None):
        """
        Initialize the selector.

        Args:
            session: SQLAlchemy session for database operations.
            tz: Business time zone for calendar-date bounds.  Defaults to UTC.
        """
        self.session = session
        self.tz = tz or timezone.utc

    def _date_range(
        self,
        column: ColumnElement,
        date_from: date | datetime | None,
        date_to: date | datetime | None,
    ) -> list[ColumnElement[bool]]:
        """
        Build WHERE clauses for an inclusive date range.

        A ``date`` covers the whole business day in ``self.tz``; a
        ``datetime`` is an exact instant (naive values are taken as ``tz``).
        """
        clauses: list[ColumnElement[bool]] = []
        if date_from is not None:
            if isinstance(date_from, datetime):
                clauses.append(column >= self._as_utc(date_from))
            else:
                clauses.append(column >= self._start_of_day(date_from))
        if date_to is not None:
            if isinstance(date_to, datetime):
                clauses.append(column <= self._as_utc(date_to))
            else:
                clauses.append(column < self._start_of_day(date_to + timedelta(days=1)))
        return clauses

    def _start_of_day(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.tz).astimezone(timezone.utc)

    def _as_utc(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.tz)
        return value.astimezone(timezone.utc)
