"""Kernel time – Clock protocol + implementations.

Two readings are exposed: wall-clock (``now`` / ``timestamp``) for cache
TTLs, circuit windows and result timestamps, and ``monotonic`` for measuring
evaluation latency.  Tests swap in :class:`FrozenClock` and move both
forward together with :meth:`FrozenClock.advance`.
"""
from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...
    def timestamp(self) -> float: ...
    def monotonic(self) -> float: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)

    def timestamp(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.perf_counter()


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, fixed: datetime) -> None:
        self._fixed = fixed
        self._elapsed = 0.0

    def now(self) -> datetime:
        return self._fixed

    def timestamp(self) -> float:
        return self._fixed.timestamp()

    def monotonic(self) -> float:
        return self._elapsed

    def advance(self, **kwargs: int | float) -> None:
        """Move forward by ``timedelta(**kwargs)``, e.g. ``advance(seconds=61)``."""
        delta = timedelta(**kwargs)
        self._fixed += delta
        self._elapsed += delta.total_seconds()


def utc_now() -> datetime:
    return datetime.now(UTC)


__all__ = ["Clock", "FrozenClock", "SystemClock", "utc_now"]
