"""Features – MetricsCollector.

Keeps per-flag usage and latency statistics in memory and mirrors every
observation onto a :class:`~flcm_rollout.observability.metrics.Metrics`
backend (``NoopMetrics`` unless one is injected).
"""
from __future__ import annotations

import asyncio
import dataclasses
from collections import deque
from datetime import datetime
from typing import Any, Mapping

from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.events import EventEmitter
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.observability.metrics import Metrics, NoopMetrics

logger = get_logger(__name__)

MAX_SAMPLES_PER_FLAG = 1000
_EXPORTED_SAMPLES = 100


@dataclasses.dataclass
class PerformanceSample:
    timestamp: datetime
    duration_ms: float
    user_id: str = "anonymous"
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
            "user_id": self.user_id,
            "success": self.success,
        }


@dataclasses.dataclass
class FlagMetrics:
    flag_name: str
    last_updated: datetime
    usage_count: int = 0
    enabled_count: int = 0
    disabled_count: int = 0
    error_count: int = 0
    unique_users: set[str] = dataclasses.field(default_factory=set)
    samples: deque[PerformanceSample] = dataclasses.field(
        default_factory=lambda: deque(maxlen=MAX_SAMPLES_PER_FLAG)
    )

    @property
    def error_rate(self) -> float:
        if self.usage_count == 0:
            return 0.0
        return self.error_count / self.usage_count

    def durations(self) -> list[float]:
        return [s.duration_ms for s in self.samples if s.success]


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _percentile(values: list[float], pct: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    index = int(pct / 100 * len(ordered))
    return ordered[min(index, len(ordered) - 1)]


class MetricsCollector:
    """Per-flag usage, adoption and evaluation-latency statistics.

    ``flush()`` emits a ``metrics-flush`` event carrying
    :meth:`get_metrics_summary` on :attr:`events`;
    :meth:`start_periodic_flush` does so every ``flush_interval`` seconds.
    """

    def __init__(
        self,
        metrics: Metrics | None = None,
        *,
        clock: Clock | None = None,
        events: EventEmitter | None = None,
        flush_interval: float = 60.0,
    ) -> None:
        self._flags: dict[str, FlagMetrics] = {}
        self._clock = clock or SystemClock()
        self.events = events or EventEmitter()
        self.flush_interval = flush_interval
        self._flush_task: asyncio.Task[None] | None = None

        backend = metrics or NoopMetrics()
        self._evaluations = backend.counter("flag.evaluations", "Feature flag evaluations")
        self._errors = backend.counter("flag.errors", "Feature flag evaluation errors")
        self._latency = backend.histogram(
            "flag.evaluation_latency_ms", "Feature flag evaluation latency", unit="ms"
        )

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_usage(self, flag_name: str, user_id: str, enabled: bool) -> None:
        metric = self._metric(flag_name)
        metric.usage_count += 1
        if enabled:
            metric.enabled_count += 1
        else:
            metric.disabled_count += 1
        metric.unique_users.add(user_id)
        metric.last_updated = self._clock.now()
        self._evaluations.add(1, {"flag": flag_name, "enabled": str(enabled).lower()})

    def track_performance(self, flag_name: str, duration_ms: float, user_id: str | None = None) -> None:
        metric = self._metric(flag_name)
        metric.samples.append(
            PerformanceSample(self._clock.now(), duration_ms, user_id or "anonymous", success=True)
        )
        metric.last_updated = self._clock.now()
        self._latency.record(duration_ms, {"flag": flag_name})

    def track_error(self, flag_name: str, user_id: str | None = None) -> None:
        metric = self._metric(flag_name)
        metric.error_count += 1
        metric.samples.append(PerformanceSample(self._clock.now(), 0.0, user_id or "anonymous", success=False))
        metric.last_updated = self._clock.now()
        self._errors.add(1, {"flag": flag_name})
        logger.debug("flag_metrics.error", flag=flag_name, error_count=metric.error_count)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_usage_metrics(self, flag_name: str) -> dict[str, Any] | None:
        metric = self._flags.get(flag_name)
        if metric is None:
            return None
        return {
            "total_usage": metric.usage_count,
            "enabled_count": metric.enabled_count,
            "disabled_count": metric.disabled_count,
            "unique_users": len(metric.unique_users),
            "adoption_rate": metric.enabled_count / metric.usage_count if metric.usage_count else 0.0,
            "last_updated": metric.last_updated,
        }

    def get_performance_metrics(self, flag_name: str) -> dict[str, Any] | None:
        metric = self._flags.get(flag_name)
        if metric is None or not metric.samples:
            return None
        durations = metric.durations()
        if not durations:
            return {"sample_count": 0, "error_rate": 1.0, "error_count": metric.error_count}
        return {
            "sample_count": len(metric.samples),
            "avg_duration": _average(durations),
            "min_duration": min(durations),
            "max_duration": max(durations),
            "p50_duration": _percentile(durations, 50),
            "p95_duration": _percentile(durations, 95),
            "p99_duration": _percentile(durations, 99),
            "error_rate": metric.error_rate,
            "error_count": metric.error_count,
        }

    def get_all_metrics(self) -> dict[str, dict[str, Any]]:
        return {
            name: {"usage": self.get_usage_metrics(name), "performance": self.get_performance_metrics(name)}
            for name in self._flags
        }

    def get_aggregated_stats(self) -> dict[str, Any]:
        users: set[str] = set()
        adoption: list[float] = []
        for metric in self._flags.values():
            users |= metric.unique_users
            if metric.usage_count:
                adoption.append(metric.enabled_count / metric.usage_count)
        return {
            "total_flags": len(self._flags),
            "total_usage": sum(m.usage_count for m in self._flags.values()),
            "total_unique_users": len(users),
            "total_errors": sum(m.error_count for m in self._flags.values()),
            "avg_adoption_rate": _average(adoption),
            "flags_with_errors": sum(1 for m in self._flags.values() if m.error_count),
        }

    def get_metrics_summary(self) -> dict[str, Any]:
        flags = {}
        for name, metric in self._flags.items():
            durations = metric.durations()
            flags[name] = {
                "usage_count": metric.usage_count,
                "enabled_count": metric.enabled_count,
                "unique_users": len(metric.unique_users),
                "error_rate": metric.error_rate,
                "avg_performance": _average(durations) if durations else None,
            }
        return {"timestamp": self._clock.now(), "flags": flags, "aggregated": self.get_aggregated_stats()}

    # ------------------------------------------------------------------
    # Persistence / lifecycle
    # ------------------------------------------------------------------

    def export_metrics(self) -> dict[str, Any]:
        """Snapshot suitable for JSON/YAML; keeps the last 100 samples per flag."""
        return {
            name: {
                "usage_count": m.usage_count,
                "enabled_count": m.enabled_count,
                "disabled_count": m.disabled_count,
                "error_count": m.error_count,
                "unique_users": sorted(m.unique_users),
                "error_rate": m.error_rate,
                "performance_samples": [s.to_dict() for s in list(m.samples)[-_EXPORTED_SAMPLES:]],
                "last_updated": m.last_updated.isoformat(),
            }
            for name, m in self._flags.items()
        }

    def import_metrics(self, data: Mapping[str, Any]) -> None:
        for name, raw in data.items():
            metric = FlagMetrics(
                flag_name=name,
                last_updated=_parse_dt(raw.get("last_updated"), self._clock),
                usage_count=int(raw.get("usage_count") or 0),
                enabled_count=int(raw.get("enabled_count") or 0),
                disabled_count=int(raw.get("disabled_count") or 0),
                error_count=int(raw.get("error_count") or 0),
                unique_users={str(u) for u in raw.get("unique_users") or ()},
            )
            for sample in raw.get("performance_samples") or ():
                metric.samples.append(
                    PerformanceSample(
                        timestamp=_parse_dt(sample.get("timestamp"), self._clock),
                        duration_ms=float(sample.get("duration_ms", sample.get("duration", 0.0))),
                        user_id=str(sample.get("user_id") or "anonymous"),
                        success=bool(sample.get("success", True)),
                    )
                )
            self._flags[name] = metric
        logger.info("flag_metrics.imported", count=len(data))

    def reset_metrics(self, flag_name: str) -> None:
        self._flags.pop(flag_name, None)
        logger.info("flag_metrics.reset", flag=flag_name)

    def reset_all(self) -> None:
        self._flags.clear()
        logger.info("flag_metrics.reset_all")

    def flush(self) -> dict[str, Any]:
        summary = self.get_metrics_summary()
        self.events.emit("metrics-flush", summary)
        logger.debug(
            "flag_metrics.flushed",
            flag_count=len(self._flags),
            total_usage=summary["aggregated"]["total_usage"],
        )
        return summary

    async def start_periodic_flush(self) -> None:
        if self._flush_task is not None:
            return
        self._flush_task = asyncio.ensure_future(self._flush_loop())

    async def shutdown(self) -> None:
        """Stop the periodic flush, flush once more and drop listeners."""
        if self._flush_task is not None:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None
        self.flush()
        self.events.remove_all_listeners()
        logger.info("flag_metrics.shutdown")

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.flush()

    def _metric(self, flag_name: str) -> FlagMetrics:
        metric = self._flags.get(flag_name)
        if metric is None:
            metric = FlagMetrics(flag_name=flag_name, last_updated=self._clock.now())
            self._flags[flag_name] = metric
        return metric


def _parse_dt(value: Any, clock: Clock) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("flag_metrics.bad_timestamp", value=value)
    return clock.now()


__all__ = ["FlagMetrics", "MAX_SAMPLES_PER_FLAG", "MetricsCollector", "PerformanceSample"]
