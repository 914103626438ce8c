"""
Clock

The source of "now" for the domain. Components receive a clock at
construction so that time-dependent rules can be exercised with a fixed instant.
"""

from datetime import datetime, timedelta, timezone


class Clock:
    """Wall clock returning timezone-aware UTC instants."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant; moved explicitly with advance()/set()."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime):
        self._instant = instant

    def advance(self, **kwargs):
        self._instant += timedelta(**kwargs)


def next_whole_hour(instant: datetime) -> datetime:
    """
    The first whole-hour boundary strictly after the instant.

    10:00:00 -> 11:00:00, 10:59:59 -> 11:00:00.
    """
    floored = instant.replace(minute=0, second=0, microsecond=0)
    return floored + timedelta(hours=1)
