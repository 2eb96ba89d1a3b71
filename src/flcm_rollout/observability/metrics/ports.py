"""Observability – metric instrument ports.

Flag evaluation publishes ``flag.evaluations`` / ``flag.errors`` /
``flag.evaluation_latency_ms``; the router publishes ``router.requests`` /
``router.errors`` / ``router.latency_ms``.  Labels are plain ``str -> str``
dicts (``flag``, ``version``, ``method``, ``status``).
"""
from __future__ import annotations

import abc
import contextlib
import time
from typing import Iterator


class Counter(abc.ABC):
    @abc.abstractmethod
    def add(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None: ...


class Histogram(abc.ABC):
    @abc.abstractmethod
    def record(self, value: float, labels: dict[str, str] | None = None) -> None: ...

    @contextlib.contextmanager
    def measure(self, labels: dict[str, str] | None = None) -> Iterator[dict[str, str]]:
        """Record the elapsed milliseconds of the ``with`` body.

        Yields a copy of *labels* the body may extend.  Nothing is recorded
        when the body raises.
        """
        bound = dict(labels or {})
        start = time.perf_counter()
        yield bound
        self.record((time.perf_counter() - start) * 1000, bound)


class Metrics(abc.ABC):
    """Port: factory for named instruments."""

    @abc.abstractmethod
    def counter(self, name: str, description: str = "", unit: str = "") -> Counter: ...

    @abc.abstractmethod
    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram: ...


# ---------------------------------------------------------------------------
# No-op backend
# ---------------------------------------------------------------------------


class _NoopCounter(Counter):
    def add(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None:
        pass


class _NoopHistogram(Histogram):
    def record(self, value: float, labels: dict[str, str] | None = None) -> None:
        pass


_NOOP_COUNTER = _NoopCounter()
_NOOP_HISTOGRAM = _NoopHistogram()


class NoopMetrics(Metrics):
    """Default backend of ``MetricsCollector`` and ``MetricsMiddleware``."""

    def counter(self, name: str, description: str = "", unit: str = "") -> Counter:
        return _NOOP_COUNTER

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram:
        return _NOOP_HISTOGRAM


__all__ = ["Counter", "Histogram", "Metrics", "NoopMetrics"]
