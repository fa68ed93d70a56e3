"""Clock used by the application layer to stamp and price cancellations.

The refund engine never reads the wall clock itself; handlers and the API ask
``get_clock().now()`` and pass the result in. Tests pin time with
``set_clock(FixedClock(...))``.
"""

from datetime import UTC, datetime, timedelta


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


_current_clock: SystemClock | FixedClock | None = None


def get_clock() -> SystemClock | FixedClock:
    """Return the active clock. Defaults to SystemClock."""
    global _current_clock
    if _current_clock is None:
        _current_clock = SystemClock()
    return _current_clock


def set_clock(clock) -> None:
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    global _current_clock
    _current_clock = None
