"""Resilience – circuit states and the per-flag outcome record."""
from __future__ import annotations

import dataclasses
from collections import deque
from datetime import datetime
from enum import Enum


class CircuitBreakerState(str, Enum):
    """CLOSED evaluates normally; OPEN short-circuits to disabled."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclasses.dataclass
class FlagCircuit:
    """Counters and timestamped outcomes for one flag."""

    state: CircuitBreakerState = CircuitBreakerState.CLOSED
    outcomes: deque[tuple[float, bool]] = dataclasses.field(default_factory=deque)
    success_count: int = 0
    error_count: int = 0
    consecutive_successes: int = 0
    consecutive_errors: int = 0
    opened_at: float | None = None
    last_success_at: datetime | None = None
    last_error_at: datetime | None = None

    def add_outcome(self, at: float, *, is_error: bool, forget_before: float) -> None:
        """Append an outcome and drop those at or before *forget_before*."""
        self.outcomes.append((at, is_error))
        while self.outcomes and self.outcomes[0][0] <= forget_before:
            self.outcomes.popleft()

    def window_stats(self, since: float) -> tuple[float, int]:
        """``(error_rate, samples)`` over outcomes strictly after *since*."""
        in_window = [is_error for ts, is_error in self.outcomes if ts > since]
        if not in_window:
            return 0.0, 0
        return sum(in_window) / len(in_window), len(in_window)

    def clear_streaks(self) -> None:
        self.consecutive_successes = 0
        self.consecutive_errors = 0


__all__ = ["CircuitBreakerState", "FlagCircuit"]
