"""Resilience – per-flag error-rate circuit breaker."""
from flcm_rollout.resilience.circuit_breaker.state import CircuitBreakerState, FlagCircuit
from flcm_rollout.resilience.circuit_breaker.policy import CircuitBreakerPolicy
from flcm_rollout.resilience.circuit_breaker.breaker import CircuitBreaker

__all__ = ["CircuitBreaker", "CircuitBreakerPolicy", "CircuitBreakerState", "FlagCircuit"]
