"""Resilience – CircuitBreaker keyed by feature-flag name."""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Any

from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.events import EventEmitter
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.resilience.circuit_breaker.policy import CircuitBreakerPolicy
from flcm_rollout.resilience.circuit_breaker.state import CircuitBreakerState, FlagCircuit

logger = get_logger(__name__)

_UNHEALTHY_ERROR_RATE = 0.3


class CircuitBreaker:
    """Tracks success/error outcomes per name and trips on sustained errors.

    One instance guards many flags; each name has its own rolling window,
    counters, state and (optionally) its own :class:`CircuitBreakerPolicy`.

    Events emitted on :attr:`events`: ``circuit-opened``,
    ``circuit-half-opened``, ``circuit-closed`` and ``circuit-reset``, each
    with a ``{"name": ..., "previous_state": ...}`` payload.

    :meth:`start_monitoring` additionally emits ``circuit-health`` for every
    known circuit each *interval* seconds (see :meth:`check_health`).
    """

    def __init__(
        self,
        default_policy: CircuitBreakerPolicy | None = None,
        *,
        clock: Clock | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        self._default_policy = default_policy or CircuitBreakerPolicy()
        self._policies: dict[str, CircuitBreakerPolicy] = {}
        self._circuits: dict[str, FlagCircuit] = {}
        self._clock = clock or SystemClock()
        self.events = events or EventEmitter()
        self._monitor_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, name: str, policy: CircuitBreakerPolicy) -> None:
        self._policies[name] = policy
        logger.debug("circuit_breaker.configured", name=name, policy=dataclasses.asdict(policy))

    def configure_from_threshold(self, name: str, threshold: Any) -> None:
        """Configure *name* from a flag's ``error_threshold`` block."""
        self.configure(name, CircuitBreakerPolicy.from_threshold(threshold))

    def policy_for(self, name: str) -> CircuitBreakerPolicy:
        return self._policies.get(name, self._default_policy)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self, name: str) -> CircuitBreakerState:
        circuit = self._circuits.get(name)
        if circuit is None:
            return CircuitBreakerState.CLOSED
        self._maybe_transition_half_open(name, circuit)
        return circuit.state

    def is_open(self, name: str) -> bool:
        return self.get_state(name) == CircuitBreakerState.OPEN

    def is_half_open(self, name: str) -> bool:
        return self.get_state(name) == CircuitBreakerState.HALF_OPEN

    def get_all_states(self) -> dict[str, CircuitBreakerState]:
        return {name: self.get_state(name) for name in list(self._circuits)}

    def error_rate(self, name: str) -> float:
        """Error rate inside the policy window; 0.0 below ``min_samples``."""
        circuit = self._circuits.get(name)
        if circuit is None:
            return 0.0
        rate, samples = self._window_stats(name, circuit)
        if samples < self.policy_for(name).min_samples:
            return 0.0
        return rate

    def get_statistics(self, name: str | None = None) -> dict[str, Any]:
        if name is not None:
            circuit = self._circuits.get(name) or FlagCircuit()
            return {
                "name": name,
                "state": self.get_state(name).value,
                "success_count": circuit.success_count,
                "error_count": circuit.error_count,
                "consecutive_successes": circuit.consecutive_successes,
                "consecutive_errors": circuit.consecutive_errors,
                "last_success_at": circuit.last_success_at,
                "last_error_at": circuit.last_error_at,
                "error_rate": self.error_rate(name),
                "is_open": self.is_open(name),
            }
        return {"circuits": {n: self.get_statistics(n) for n in list(self._circuits)}}

    # ------------------------------------------------------------------
    # Outcome recording
    # ------------------------------------------------------------------

    def record_success(self, name: str) -> None:
        circuit = self._circuit(name)
        self._maybe_transition_half_open(name, circuit)
        circuit.success_count += 1
        circuit.consecutive_successes += 1
        circuit.consecutive_errors = 0
        circuit.last_success_at = self._clock.now()
        self._record_outcome(name, circuit, is_error=False)

        if (
            circuit.state == CircuitBreakerState.HALF_OPEN
            and circuit.consecutive_successes >= self.policy_for(name).success_threshold
        ):
            self._close(name, circuit)

    def record_error(self, name: str) -> None:
        circuit = self._circuit(name)
        self._maybe_transition_half_open(name, circuit)
        circuit.error_count += 1
        circuit.consecutive_errors += 1
        circuit.consecutive_successes = 0
        circuit.last_error_at = self._clock.now()
        self._record_outcome(name, circuit, is_error=True)

        if circuit.state == CircuitBreakerState.HALF_OPEN:
            self._open(name, circuit)
            return
        if circuit.state == CircuitBreakerState.CLOSED:
            policy = self.policy_for(name)
            rate, samples = self._window_stats(name, circuit)
            logger.debug(
                "circuit_breaker.failure",
                name=name, error_rate=rate, samples=samples, threshold=policy.error_rate,
            )
            if samples >= policy.min_samples and rate > policy.error_rate:
                self._open(name, circuit)

    def reset(self, name: str) -> None:
        """Force the circuit for *name* closed and forget its history."""
        previous = self._circuits.pop(name, None)
        logger.info("circuit_breaker.reset", name=name)
        self.events.emit(
            "circuit-reset",
            {"name": name, "previous_state": previous.state if previous else CircuitBreakerState.CLOSED},
        )

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def check_health(self) -> list[dict[str, Any]]:
        """Emit ``circuit-health`` per circuit; warn on OPEN or an error rate above 0.3."""
        reports: list[dict[str, Any]] = []
        for name in list(self._circuits):
            state = self.get_state(name)
            rate = self.error_rate(name)
            healthy = state != CircuitBreakerState.OPEN and rate <= _UNHEALTHY_ERROR_RATE
            report = {
                "name": name,
                "state": state,
                "error_rate": rate,
                "healthy": healthy,
                "statistics": self.get_statistics(name),
            }
            self.events.emit("circuit-health", report)
            if not healthy:
                logger.warning("circuit_breaker.unhealthy", name=name, state=state.value, error_rate=rate)
            reports.append(report)
        return reports

    async def start_monitoring(self, interval: float = 10.0) -> None:
        if self._monitor_task is not None:
            return
        self._monitor_task = asyncio.ensure_future(self._monitor_loop(interval))

    async def shutdown(self) -> None:
        """Stop monitoring and drop listeners."""
        if self._monitor_task is not None:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None
        self.events.remove_all_listeners()
        logger.info("circuit_breaker.shutdown")

    async def _monitor_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.check_health()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _circuit(self, name: str) -> FlagCircuit:
        circuit = self._circuits.get(name)
        if circuit is None:
            circuit = FlagCircuit()
            self._circuits[name] = circuit
        return circuit

    def _record_outcome(self, name: str, circuit: FlagCircuit, *, is_error: bool) -> None:
        now = self._clock.timestamp()
        policy = self.policy_for(name)
        circuit.add_outcome(
            now, is_error=is_error, forget_before=now - max(policy.retention_seconds, policy.window_seconds)
        )

    def _window_stats(self, name: str, circuit: FlagCircuit) -> tuple[float, int]:
        return circuit.window_stats(since=self._clock.timestamp() - self.policy_for(name).window_seconds)

    def _maybe_transition_half_open(self, name: str, circuit: FlagCircuit) -> None:
        timeout = self.policy_for(name).recovery_timeout_seconds
        if (
            timeout is not None
            and circuit.state == CircuitBreakerState.OPEN
            and circuit.opened_at is not None
            and self._clock.timestamp() - circuit.opened_at >= timeout
        ):
            logger.info("circuit_breaker.half_open", name=name)
            circuit.state = CircuitBreakerState.HALF_OPEN
            circuit.clear_streaks()
            self.events.emit("circuit-half-opened", {"name": name, "previous_state": CircuitBreakerState.OPEN})

    def _open(self, name: str, circuit: FlagCircuit) -> None:
        previous = circuit.state
        circuit.state = CircuitBreakerState.OPEN
        circuit.opened_at = self._clock.timestamp()
        logger.warning(
            "circuit_breaker.opened",
            name=name, previous_state=previous.value, error_rate=self._window_stats(name, circuit)[0],
        )
        self.events.emit("circuit-opened", {"name": name, "previous_state": previous})

    def _close(self, name: str, circuit: FlagCircuit) -> None:
        previous = circuit.state
        circuit.state = CircuitBreakerState.CLOSED
        circuit.opened_at = None
        circuit.clear_streaks()
        logger.info("circuit_breaker.closed", name=name, previous_state=previous.value)
        self.events.emit("circuit-closed", {"name": name, "previous_state": previous})


__all__ = ["CircuitBreaker"]
