"""Time sources for TTL checks and discount windows."""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current instant."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """A clock that only moves when told to.

    Example::

        clock = FrozenClock(datetime(2024, 1, 1, tzinfo=timezone.utc))
        session = ManagerAuthorizationSession(verifier, clock=clock)
        clock.advance(minutes=31)
    """

    def __init__(self, instant: datetime | None = None) -> None:
        self._instant = instant or datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by ``timedelta(**kwargs)`` and return the new instant."""
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant
