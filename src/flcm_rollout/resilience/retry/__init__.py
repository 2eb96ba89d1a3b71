"""Resilience – retry policies."""
from flcm_rollout.resilience.retry.tenacity_adapter import RetryHook, TenacityRetryPolicy

__all__ = ["RetryHook", "TenacityRetryPolicy"]
