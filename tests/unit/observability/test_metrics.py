"""Unit tests for metrics ports and the in-memory fake."""

from __future__ import annotations

import pytest

from flcm_rollout.observability.metrics import NoopMetrics
from flcm_rollout.testing import FakeMetricsRegistry


class TestNoopMetrics:
    def test_instruments_accept_calls(self) -> None:
        metrics = NoopMetrics()
        metrics.counter("flag.evaluations").add(1, {"flag": "f"})
        metrics.histogram("flag.evaluation_latency_ms").record(1.5)


class TestFakeMetricsRegistry:
    def test_same_instrument_per_name(self) -> None:
        registry = FakeMetricsRegistry()
        assert registry.counter("a") is registry.counter("a")
        assert registry.histogram("h") is registry.histogram("h")

    def test_counter_totals(self) -> None:
        registry = FakeMetricsRegistry()
        counter = registry.counter("router.requests")
        counter.add()
        counter.add(2, {"version": "2.0"})
        assert counter.total == 3
        registry.assert_counter_incremented("router.requests", 2)

    def test_histogram_values(self) -> None:
        registry = FakeMetricsRegistry()
        registry.histogram("router.latency_ms").record(4.0)
        assert registry.histograms["router.latency_ms"].values == [4.0]

    def test_assertion_messages(self) -> None:
        registry = FakeMetricsRegistry()
        with pytest.raises(AssertionError, match="never created"):
            registry.assert_counter_incremented("missing")
        registry.counter("c").add()
        with pytest.raises(AssertionError, match="expected 2"):
            registry.assert_counter_incremented("c", 2)

    def test_reset(self) -> None:
        registry = FakeMetricsRegistry()
        registry.counter("c").add()
        registry.reset()
        assert registry.counters == {}


class TestHistogramMeasure:
    def test_records_elapsed_with_labels(self) -> None:
        registry = FakeMetricsRegistry()
        histogram = registry.histogram("router.latency_ms")
        with histogram.measure({"version": "2.0"}) as labels:
            labels["status"] = "200"
        [(elapsed, recorded)] = histogram.calls
        assert elapsed >= 0
        assert recorded == {"version": "2.0", "status": "200"}

    def test_nothing_recorded_on_error(self) -> None:
        registry = FakeMetricsRegistry()
        histogram = registry.histogram("router.latency_ms")
        with pytest.raises(RuntimeError):
            with histogram.measure():
                raise RuntimeError("boom")
        assert histogram.calls == []

    def test_noop_histogram_measures(self) -> None:
        with NoopMetrics().histogram("flag.evaluation_latency_ms").measure() as labels:
            labels["flag"] = "f"


class TestLabelFiltering:
    def test_counter_total_for(self) -> None:
        registry = FakeMetricsRegistry()
        counter = registry.counter("router.requests")
        counter.add(1, {"version": "2.0", "status": "200"})
        counter.add(1, {"version": "1.0", "status": "200"})
        counter.add(1)
        assert counter.total_for(version="2.0") == 1
        assert counter.total_for(status="200") == 2
        assert counter.total_for() == 3

    def test_histogram_values_for(self) -> None:
        registry = FakeMetricsRegistry()
        histogram = registry.histogram("flag.evaluation_latency_ms")
        histogram.record(1.0, {"flag": "a"})
        histogram.record(2.0, {"flag": "b"})
        assert histogram.values_for(flag="b") == [2.0]
