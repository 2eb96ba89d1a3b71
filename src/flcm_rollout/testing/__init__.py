"""Test doubles for flcm_rollout ports."""
from flcm_rollout.testing.fakes import FakeClock, FakeMetricsRegistry, StaticVersionHandler

__all__ = ["FakeClock", "FakeMetricsRegistry", "StaticVersionHandler"]
