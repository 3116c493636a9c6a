"""
Time sources for token issuance

Token age is measured in whole Unix seconds. Both the `iat` claim and the
freshness check go through `epoch_seconds`, so they truncate the same way.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock backed by the host's time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Deterministic clock for tests and replays
    Only moves when told to
    """

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds)
            return self._now

    def set(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        with self._lock:
            self._now = moment


def epoch_seconds(moment: datetime) -> int:
    """Whole seconds since the Unix epoch, truncated toward zero"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())
