"""Testing fakes – in-memory doubles for clocks, metrics and handlers."""
from flcm_rollout.testing.fakes.clock import FakeClock
from flcm_rollout.testing.fakes.handlers import StaticVersionHandler
from flcm_rollout.testing.fakes.metrics import FakeMetricsRegistry

__all__ = ["FakeClock", "FakeMetricsRegistry", "StaticVersionHandler"]
