"""Unit tests for MetricsCollector."""

from __future__ import annotations

import asyncio

import pytest

from flcm_rollout.features.metrics import MAX_SAMPLES_PER_FLAG, MetricsCollector
from flcm_rollout.testing import FakeClock, FakeMetricsRegistry


def _collector() -> tuple[MetricsCollector, FakeMetricsRegistry]:
    registry = FakeMetricsRegistry()
    return MetricsCollector(registry, clock=FakeClock()), registry


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


class TestUsage:
    def test_counts_and_adoption(self) -> None:
        collector, _ = _collector()
        collector.track_usage("f", "u1", True)
        collector.track_usage("f", "u2", False)
        collector.track_usage("f", "u1", True)
        usage = collector.get_usage_metrics("f")
        assert usage is not None
        assert usage["total_usage"] == 3
        assert usage["enabled_count"] == 2
        assert usage["disabled_count"] == 1
        assert usage["unique_users"] == 2
        assert usage["adoption_rate"] == pytest.approx(2 / 3)

    def test_unknown_flag(self) -> None:
        collector, _ = _collector()
        assert collector.get_usage_metrics("missing") is None
        assert collector.get_performance_metrics("missing") is None

    def test_mirrored_to_backend(self) -> None:
        collector, registry = _collector()
        collector.track_usage("f", "u1", True)
        collector.track_usage("f", "u2", False)
        registry.assert_counter_incremented("flag.evaluations", 2)
        labels = [labels for _, labels in registry.counters["flag.evaluations"].calls]
        assert labels == [{"flag": "f", "enabled": "true"}, {"flag": "f", "enabled": "false"}]
        assert registry.counters["flag.evaluations"].total_for(flag="f", enabled="true") == 1


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


class TestPerformance:
    def test_percentiles(self) -> None:
        collector, registry = _collector()
        for ms in range(1, 101):
            collector.track_performance("f", float(ms), "u1")
        perf = collector.get_performance_metrics("f")
        assert perf is not None
        assert perf["sample_count"] == 100
        assert perf["avg_duration"] == pytest.approx(50.5)
        assert perf["min_duration"] == 1.0
        assert perf["max_duration"] == 100.0
        assert perf["p50_duration"] == 51.0
        assert perf["p95_duration"] == 96.0
        assert perf["p99_duration"] == 100.0
        registry.assert_histogram_recorded("flag.evaluation_latency_ms", 100)

    def test_only_errors(self) -> None:
        collector, _ = _collector()
        collector.track_error("f", "u1")
        assert collector.get_performance_metrics("f") == {
            "sample_count": 0, "error_rate": 1.0, "error_count": 1,
        }

    def test_samples_bounded(self) -> None:
        collector, _ = _collector()
        for i in range(MAX_SAMPLES_PER_FLAG + 50):
            collector.track_performance("f", float(i))
        perf = collector.get_performance_metrics("f")
        assert perf is not None
        assert perf["sample_count"] == MAX_SAMPLES_PER_FLAG
        assert perf["min_duration"] == 50.0

    def test_error_rate_over_usage(self) -> None:
        collector, registry = _collector()
        for _ in range(4):
            collector.track_usage("f", "u1", True)
            collector.track_performance("f", 2.0)
        collector.track_error("f")
        perf = collector.get_performance_metrics("f")
        assert perf is not None
        assert perf["error_rate"] == pytest.approx(0.25)
        registry.assert_counter_incremented("flag.errors", 1)


# ---------------------------------------------------------------------------
# Aggregation / persistence
# ---------------------------------------------------------------------------


class TestAggregation:
    def test_aggregated_stats(self) -> None:
        collector, _ = _collector()
        collector.track_usage("a", "u1", True)
        collector.track_usage("b", "u2", False)
        collector.track_error("b")
        stats = collector.get_aggregated_stats()
        assert stats["total_flags"] == 2
        assert stats["total_usage"] == 2
        assert stats["total_unique_users"] == 2
        assert stats["total_errors"] == 1
        assert stats["avg_adoption_rate"] == pytest.approx(0.5)
        assert stats["flags_with_errors"] == 1

    def test_summary(self) -> None:
        collector, _ = _collector()
        collector.track_usage("a", "u1", True)
        summary = collector.get_metrics_summary()
        assert summary["flags"]["a"]["usage_count"] == 1
        assert summary["flags"]["a"]["avg_performance"] is None
        assert set(collector.get_all_metrics()) == {"a"}

    def test_export_import(self) -> None:
        source, _ = _collector()
        source.track_usage("a", "u1", True)
        for i in range(150):
            source.track_performance("a", float(i))
        exported = source.export_metrics()
        assert len(exported["a"]["performance_samples"]) == 100

        target, _ = _collector()
        target.import_metrics(exported)
        usage = target.get_usage_metrics("a")
        assert usage is not None
        assert usage["unique_users"] == 1
        perf = target.get_performance_metrics("a")
        assert perf is not None
        assert perf["min_duration"] == 50.0

    def test_reset(self) -> None:
        collector, _ = _collector()
        collector.track_usage("a", "u1", True)
        collector.track_usage("b", "u1", True)
        collector.reset_metrics("a")
        assert collector.get_usage_metrics("a") is None
        collector.reset_all()
        assert collector.get_all_metrics() == {}


class TestFlush:
    def test_flush_emits_summary(self) -> None:
        collector, _ = _collector()
        received: list[dict] = []
        collector.events.on("metrics-flush", received.append)
        collector.track_usage("a", "u1", True)
        summary = collector.flush()
        assert received == [summary]

    def test_shutdown_flushes_and_drops_listeners(self) -> None:
        collector, _ = _collector()
        received: list[dict] = []
        collector.events.on("metrics-flush", received.append)

        async def run() -> None:
            await collector.start_periodic_flush()
            await collector.shutdown()

        asyncio.run(run())
        assert len(received) == 1
        assert collector.events.listener_count("metrics-flush") == 0
