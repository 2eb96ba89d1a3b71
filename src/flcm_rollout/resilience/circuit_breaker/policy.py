"""Resilience – CircuitBreakerPolicy."""
from __future__ import annotations

import dataclasses
from typing import Any


@dataclasses.dataclass
class CircuitBreakerPolicy:
    """Error-rate trip configuration for one circuit.

    The circuit opens when, within the last ``window_seconds``, at least
    ``min_samples`` outcomes were recorded and the error rate is strictly
    greater than ``error_rate``.

    ``recovery_timeout_seconds`` of ``None`` keeps an open circuit open until
    :meth:`CircuitBreaker.reset` is called.  A number enables HALF_OPEN
    probing after that many seconds; ``success_threshold`` consecutive
    successes then close the circuit.
    """
    error_rate: float = 0.5
    window_seconds: float = 60.0
    min_samples: int = 5
    recovery_timeout_seconds: float | None = None
    success_threshold: int = 5
    retention_seconds: float = 300.0

    @classmethod
    def from_threshold(cls, threshold: Any, **overrides: Any) -> "CircuitBreakerPolicy":
        """Build a policy from any object exposing ``rate``, ``window`` and ``min_samples``."""
        return cls(
            error_rate=float(threshold.rate),
            window_seconds=float(threshold.window),
            min_samples=int(threshold.min_samples),
            **overrides,
        )


__all__ = ["CircuitBreakerPolicy"]
