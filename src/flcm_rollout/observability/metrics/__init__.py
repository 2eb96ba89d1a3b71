"""Observability – metrics ports."""
from flcm_rollout.observability.metrics.ports import Counter, Histogram, Metrics, NoopMetrics

__all__ = ["Counter", "Histogram", "Metrics", "NoopMetrics"]
