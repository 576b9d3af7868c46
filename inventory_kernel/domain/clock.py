"""
Module: inventory_kernel.domain.clock
Responsibility: Injectable source of "now" for ledger timestamps and the
    business date embedded in journal numbers.
Architecture position: Kernel > Domain.  SystemClock is the only place in
    the kernel that reads the wall clock.

Invariants enforced:
    - Every instant handed out is timezone-aware.
    - The business date is derived from UTC and converted into the store's
      time zone, never from the host's local time.

Failure modes:
    - ValueError if a DeterministicClock is given a naive datetime.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo

# 10:00 on 4 January 2026 in Asia/Jakarta
DEFAULT_TEST_INSTANT = datetime(2026, 1, 4, 3, 0, tzinfo=timezone.utc)


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("DeterministicClock requires a timezone-aware datetime")
    return value


class Clock(ABC):
    """Time source passed to every service that stamps or dates a record."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def today(self, tz: tzinfo) -> date:
        """Calendar date of ``now`` as seen in ``tz``."""
        return self.now_utc().astimezone(tz).date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    Time only moves when ``advance``, ``tick`` or ``set_time`` is called,
    so journal dates and ledger ordering are reproducible.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = _require_aware(fixed_time or DEFAULT_TEST_INSTANT)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = _require_aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance one second and return the new instant."""
        self.advance(1)
        return self._current
