"""Testing fakes – FakeMetricsRegistry."""
from __future__ import annotations

from flcm_rollout.observability.metrics.ports import Counter, Histogram, Metrics

Call = tuple[float, dict[str, str] | None]


def _matches(labels: dict[str, str] | None, wanted: dict[str, str]) -> bool:
    have = labels or {}
    return all(have.get(k) == v for k, v in wanted.items())


class _FakeCounter(Counter):
    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: list[Call] = []

    def add(self, value: float = 1.0, labels: dict[str, str] | None = None) -> None:
        self.calls.append((value, labels))

    @property
    def total(self) -> float:
        return sum(v for v, _ in self.calls)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def total_for(self, **labels: str) -> float:
        """Sum of increments whose labels include every *labels* pair."""
        return sum(v for v, seen in self.calls if _matches(seen, labels))


class _FakeHistogram(Histogram):
    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: list[Call] = []

    def record(self, value: float, labels: dict[str, str] | None = None) -> None:
        self.calls.append((value, labels))

    @property
    def values(self) -> list[float]:
        return [v for v, _ in self.calls]

    def values_for(self, **labels: str) -> list[float]:
        return [v for v, seen in self.calls if _matches(seen, labels)]


class FakeMetricsRegistry(Metrics):
    """Records every instrument call so tests can assert on them.

    ::

        registry = FakeMetricsRegistry()
        collector = MetricsCollector(registry)
        collector.track_usage("v2_mentor_layer", "u1", True)
        assert registry.counters["flag.evaluations"].total_for(enabled="true") == 1
    """

    def __init__(self) -> None:
        self.counters: dict[str, _FakeCounter] = {}
        self.histograms: dict[str, _FakeHistogram] = {}

    def counter(self, name: str, description: str = "", unit: str = "") -> _FakeCounter:
        return self.counters.setdefault(name, _FakeCounter(name))

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> _FakeHistogram:
        return self.histograms.setdefault(name, _FakeHistogram(name))

    def assert_counter_incremented(self, name: str, n: int = 1) -> None:
        """*name* exists and ``add`` was called exactly *n* times."""
        counter = self.counters.get(name)
        assert counter is not None, f"Counter '{name}' was never created"
        assert counter.call_count == n, (
            f"Counter '{name}' was incremented {counter.call_count} time(s), expected {n}"
        )

    def assert_histogram_recorded(self, name: str, n: int = 1) -> None:
        histogram = self.histograms.get(name)
        assert histogram is not None, f"Histogram '{name}' was never created"
        assert len(histogram.calls) == n, (
            f"Histogram '{name}' recorded {len(histogram.calls)} value(s), expected {n}"
        )

    def reset(self) -> None:
        self.counters.clear()
        self.histograms.clear()


__all__ = ["FakeMetricsRegistry"]
