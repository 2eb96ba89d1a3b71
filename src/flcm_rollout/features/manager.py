"""Features – FeatureFlagManager.

Evaluation order for ``evaluate(flag_name, context)``; the first decisive
step wins:

1. cached result younger than ``cache_ttl_seconds``
2. unknown flag → ``"Flag not found"`` (not cached)
3. open circuit → ``"Circuit breaker open"``
4. kill-switch (``enabled is False``) → ``"Flag disabled"``
5. dependencies, evaluated recursively → ``"Dependency <dep> not enabled"``
6. conditions (AND, optional ``negate``) → ``"Conditions not met"``
7. cohort overrides in declaration order → ``"In cohort: <name>"``
8. percentage rollout → ``"In <pct>% rollout"`` / ``"Default value"``
9. the flag default → ``"Default value"``

Evaluation never raises; an unexpected failure yields
``"Error during evaluation"`` and counts against the flag's circuit.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

from flcm_rollout.config.files import read_yaml
from flcm_rollout.config.settings import EnvSettingsLoader, SettingsFactory
from flcm_rollout.features.bucketing import is_in_rollout_percentage, select_variant
from flcm_rollout.features.cohorts import CohortManager
from flcm_rollout.features.defaults import DEFAULT_FLAGS
from flcm_rollout.features.errors import EvaluationError, FlagNotFoundError
from flcm_rollout.features.metrics import MetricsCollector
from flcm_rollout.features.models import (
    Condition,
    EvaluationContext,
    EvaluationResult,
    FeatureFlag,
)
from flcm_rollout.features.operators import matches
from flcm_rollout.features.provider import FeatureFlagProvider
from flcm_rollout.features.remote import RemoteConfigClient
from flcm_rollout.features.settings import FlagSettings
from flcm_rollout.kernel.errors import ValidationError
from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.resilience.circuit_breaker import CircuitBreaker

logger = get_logger(__name__)

_CACHE_CLEANUP_THRESHOLD = 1000


def _format_pct(percentage: float) -> str:
    return f"{percentage:g}"


def _parse_flags(raw: Any) -> list[FeatureFlag]:
    if not isinstance(raw, Mapping):
        raise ValidationError("'flags' must be a mapping of flag name to definition")
    return [
        flag if isinstance(flag, FeatureFlag) else FeatureFlag.from_dict(flag, name=name)
        for name, flag in raw.items()
    ]


class FeatureFlagManager(FeatureFlagProvider):
    """Evaluates feature flags for users and manages their definitions.

    Usage::

        manager = FeatureFlagManager()
        ctx = EvaluationContext("u1", {"beta_opt_in": True})
        result = await manager.evaluate("v2_mentor_layer", ctx)
        result.reason  # "In cohort: beta_testers"
    """

    def __init__(
        self,
        flags: Iterable[FeatureFlag] | None = None,
        *,
        cohorts: CohortManager | None = None,
        metrics: MetricsCollector | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        remote: RemoteConfigClient | None = None,
        clock: Clock | None = None,
        cache_ttl_seconds: float = 60.0,
        seed_defaults: bool = True,
    ) -> None:
        self._clock = clock or SystemClock()
        self.cohorts = cohorts or CohortManager(clock=self._clock)
        self.metrics = metrics or MetricsCollector(clock=self._clock)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(clock=self._clock)
        self.remote = remote
        self.cache_ttl_seconds = cache_ttl_seconds
        self._flags: dict[str, FeatureFlag] = {}
        self._cache: dict[tuple[str, str], EvaluationResult] = {}

        if seed_defaults:
            for flag in _parse_flags(DEFAULT_FLAGS):
                self._register(flag)
        for flag in flags or ():
            self._register(flag)

        self.circuit_breaker.events.on("circuit-reset", lambda _payload: self.clear_cache())
        self.cohorts.events.on("cohorts-changed", lambda _payload: self.clear_cache())
        if self.remote is not None:
            self.remote.events.on("config-updated", self.update_flags)

        logger.info("flag_manager.initialized", flag_count=len(self._flags))

    # ------------------------------------------------------------------
    # FeatureFlagProvider
    # ------------------------------------------------------------------

    async def evaluate(self, flag_name: str, context: EvaluationContext) -> EvaluationResult:
        return self._evaluate(flag_name, context, frozenset())

    def _evaluate(
        self, flag_name: str, context: EvaluationContext, visiting: frozenset[str]
    ) -> EvaluationResult:
        if flag_name in visiting:
            logger.warning("flag.dependency_cycle", flag=flag_name, path=sorted(visiting))
            return self._result(flag_name, context, False, f"Dependency cycle detected at {flag_name}")

        key = (flag_name, context.user_id)
        cached = self._cache.get(key)
        if cached is not None and self._clock.timestamp() - cached.timestamp.timestamp() < self.cache_ttl_seconds:
            return cached

        flag = self._flags.get(flag_name)
        if flag is None:
            logger.warning("flag.not_found", flag=flag_name)
            return self._result(flag_name, context, False, "Flag not found")

        start = self._clock.monotonic()
        try:
            if self.circuit_breaker.is_open(flag_name):
                self.metrics.track_usage(flag_name, context.user_id, False)
                return self._cached(key, self._result(flag_name, context, False, "Circuit breaker open"))

            if flag.enabled is False:
                self.metrics.track_usage(flag_name, context.user_id, False)
                return self._cached(key, self._result(flag_name, context, False, "Flag disabled"))

            for dep in flag.dependencies:
                if not self._evaluate(dep, context, visiting | {flag_name}).enabled:
                    return self._cached(
                        key, self._result(flag_name, context, False, f"Dependency {dep} not enabled")
                    )

            if not self._conditions_met(flag.conditions, context):
                return self._cached(key, self._result(flag_name, context, False, "Conditions not met"))

            result = self._rollout(flag, context)
            self._track_success(flag_name, context.user_id, result.enabled, start)
            return self._cached(key, result)
        except Exception as exc:  # noqa: BLE001
            error = EvaluationError(flag_name, "Error during evaluation", cause=exc)
            logger.exception("flag.evaluation_failed", user_id=context.user_id, **error.log_fields())
            self.circuit_breaker.record_error(flag_name)
            self.metrics.track_error(flag_name, context.user_id)
            return self._result(flag_name, context, bool(flag.default), "Error during evaluation")

    def _rollout(self, flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
        rollout = flag.rollout
        if rollout is not None and rollout.cohorts:
            user_cohorts = self.cohorts.get_user_cohorts(context.user_id, context)
            for cohort_name, enabled in rollout.cohorts.items():
                if enabled and cohort_name in user_cohorts:
                    return self._result(flag.name, context, True, f"In cohort: {cohort_name}")

        if rollout is not None and rollout.percentage is not None:
            in_rollout = is_in_rollout_percentage(context.user_id, rollout.percentage)
            enabled = in_rollout or flag.default
            reason = f"In {_format_pct(rollout.percentage)}% rollout" if in_rollout else "Default value"
            variant = select_variant(flag.variants, context.user_id) if enabled else None
            return self._result(flag.name, context, enabled, reason, variant)

        return self._result(flag.name, context, flag.default, "Default value")

    @staticmethod
    def _conditions_met(conditions: Iterable[Condition], context: EvaluationContext) -> bool:
        for condition in conditions:
            met = matches(context.attributes, condition.attribute, condition.operator, condition.value)
            if condition.negate:
                met = not met
            if not met:
                return False
        return True

    def _result(
        self,
        flag_name: str,
        context: EvaluationContext,
        enabled: bool,
        reason: str,
        variant: str | None = None,
    ) -> EvaluationResult:
        return EvaluationResult(
            flag_name=flag_name,
            user_id=context.user_id,
            enabled=enabled,
            reason=reason,
            variant=variant,
            timestamp=self._clock.now(),
        )

    def _cached(self, key: tuple[str, str], result: EvaluationResult) -> EvaluationResult:
        self._cache[key] = result
        if len(self._cache) > _CACHE_CLEANUP_THRESHOLD:
            self._evict_expired()
        return result

    def _evict_expired(self) -> None:
        now = self._clock.timestamp()
        expired = [
            k for k, r in self._cache.items() if now - r.timestamp.timestamp() >= self.cache_ttl_seconds
        ]
        for k in expired:
            del self._cache[k]
        logger.debug("flag_manager.cache_evicted", evicted=len(expired), remaining=len(self._cache))

    def _track_success(self, flag_name: str, user_id: str, enabled: bool, start: float) -> None:
        self.circuit_breaker.record_success(flag_name)
        self.metrics.track_performance(flag_name, (self._clock.monotonic() - start) * 1000, user_id)
        self.metrics.track_usage(flag_name, user_id, enabled)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def register_flag(self, flag: FeatureFlag) -> None:
        self._register(flag)
        self.clear_cache()

    def update_flags(self, config: Mapping[str, Any]) -> int:
        """Apply a ``{"flags": {...}}`` payload; nothing changes if any flag is invalid."""
        flags = _parse_flags(config.get("flags") or {})
        for flag in flags:
            self._register(flag)
        self.clear_cache()
        logger.info("flag_manager.flags_updated", count=len(flags), version=config.get("version"))
        return len(flags)

    def update_flag(self, name: str, partial: Mapping[str, Any]) -> FeatureFlag:
        existing = self._flags.get(name)
        if existing is None:
            raise FlagNotFoundError(name)
        updated = existing.merge(partial)
        self._register(updated)
        self.clear_cache()
        logger.info("flag_manager.flag_updated", flag=name, fields=sorted(partial))
        return updated

    def rollback(self, name: str) -> FeatureFlag:
        """Kill-switch: disable *name* for everyone and reset its circuit."""
        flag = self.update_flag(name, {"enabled": False, "rollout": {"percentage": 0}})
        self.circuit_breaker.reset(name)
        logger.warning("flag_manager.rolled_back", flag=name)
        return flag

    def load_local_config(self, path: str | Path) -> int:
        """Load a YAML file with a top-level ``flags`` mapping."""
        count = self.update_flags({"flags": read_yaml(path).get("flags") or {}})
        logger.info("flag_manager.local_config_loaded", path=str(path), count=count)
        return count

    def get_flag(self, name: str) -> FeatureFlag | None:
        return self._flags.get(name)

    def get_all_flags(self) -> dict[str, FeatureFlag]:
        return dict(self._flags)

    def get_metrics(self, name: str) -> dict[str, Any]:
        return {
            "usage": self.metrics.get_usage_metrics(name),
            "performance": self.metrics.get_performance_metrics(name),
            "circuit_state": self.circuit_breaker.get_state(name),
        }

    def clear_cache(self) -> None:
        self._cache.clear()

    async def start(self) -> None:
        """Start remote polling (if configured), metrics flushing and circuit monitoring."""
        if self.remote is not None:
            await self.remote.start_polling()
        await self.metrics.start_periodic_flush()
        await self.circuit_breaker.start_monitoring()

    async def shutdown(self) -> None:
        if self.remote is not None:
            await self.remote.aclose()
        await self.metrics.shutdown()
        await self.circuit_breaker.shutdown()
        logger.info("flag_manager.shutdown")

    def _register(self, flag: FeatureFlag) -> None:
        self._flags[flag.name] = flag
        if flag.error_threshold is not None:
            self.circuit_breaker.configure_from_threshold(flag.name, flag.error_threshold)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def create_flag_manager(settings: FlagSettings | None = None, **kwargs: Any) -> FeatureFlagManager:
    """Build a manager from :class:`FlagSettings` (read from the environment by default)."""
    settings = settings or SettingsFactory.create(FlagSettings, [EnvSettingsLoader()])
    remote = None
    if settings.remote_url:
        remote = RemoteConfigClient(settings.remote_url, poll_interval=settings.poll_interval_seconds)
    manager = FeatureFlagManager(remote=remote, cache_ttl_seconds=settings.cache_ttl_seconds, **kwargs)
    if settings.config_path:
        manager.load_local_config(settings.config_path)
    return manager


_default_manager: FeatureFlagManager | None = None


def get_default_manager() -> FeatureFlagManager:
    """Process-wide manager, built from the environment on first use."""
    global _default_manager
    if _default_manager is None:
        _default_manager = create_flag_manager()
    return _default_manager


__all__ = ["FeatureFlagManager", "create_flag_manager", "get_default_manager"]
