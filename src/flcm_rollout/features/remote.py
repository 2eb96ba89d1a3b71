"""Features – RemoteConfigClient.

Polls an HTTP endpoint serving the flag configuration as JSON::

    {"version": "1.4.0", "last_modified": "...", "flags": {"name": {...}}}

Conditional requests use the last ``ETag``; ``304 Not Modified`` keeps the
cached payload.  Events on :attr:`RemoteConfigClient.events`:

``config-updated``
    a new, valid payload (the payload dict).
``config-error``
    a failed attempt or an invalid payload (the exception).
``config-fetch-failed``
    every retry failed (``{"error": exc, "retries": n}``).
"""
from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any, Mapping

from flcm_rollout.adapters.http import HttpClient, HttpxHttpClient, JsonDocument
from flcm_rollout.features.errors import RemoteConfigError
from flcm_rollout.features.models import FeatureFlag
from flcm_rollout.kernel.errors import (
    ExternalServiceError,
    SerializationError,
    TimeoutError as AppTimeoutError,
    ValidationError,
)
from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.events import EventEmitter
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.resilience.retry import TenacityRetryPolicy

logger = get_logger(__name__)

USER_AGENT = "FLCM-FeatureFlags/2.0"

_RETRYABLE = (ExternalServiceError, AppTimeoutError, SerializationError)


def validate_remote_config(payload: Any) -> list[str]:
    """Return the problems found in *payload*; empty when it is usable."""
    if not isinstance(payload, Mapping):
        return ["payload must be an object"]
    problems: list[str] = []
    version = payload.get("version")
    if not isinstance(version, str) or not version:
        problems.append("'version' must be a non-empty string")
    flags = payload.get("flags")
    if not isinstance(flags, Mapping):
        problems.append("'flags' must be an object")
        return problems
    for key, flag in flags.items():
        if not isinstance(flag, Mapping):
            problems.append(f"flag '{key}': must be an object")
            continue
        found = len(problems)
        if not isinstance(flag.get("name"), str) or not flag.get("name"):
            problems.append(f"flag '{key}': 'name' must be a non-empty string")
        if not isinstance(flag.get("default"), bool):
            problems.append(f"flag '{key}': 'default' must be a boolean")
        rollout = flag.get("rollout")
        if rollout is not None and not isinstance(rollout, Mapping):
            problems.append(f"flag '{key}': 'rollout' must be an object")
        elif rollout is not None:
            pct = rollout.get("percentage")
            if pct is not None and (
                isinstance(pct, bool) or not isinstance(pct, (int, float)) or not 0 <= pct <= 100
            ):
                problems.append(f"flag '{key}': 'rollout.percentage' must be a number in [0, 100]")
        if len(problems) > found:
            continue
        # Variants, conditions and thresholds: accept only what the manager can apply.
        try:
            FeatureFlag.from_dict(flag, name=key)
        except ValidationError as exc:
            problems.append(f"flag '{key}': {exc.message}")
        except (TypeError, ValueError) as exc:
            problems.append(f"flag '{key}': {exc}")
    return problems


def _flags_fingerprint(payload: Mapping[str, Any] | None) -> str:
    return json.dumps((payload or {}).get("flags"), sort_keys=True, default=str)


class RemoteConfigClient:
    """Fetches and caches remote flag configuration.

    Failed fetches are retried ``max_retries`` times, waiting
    ``retry_delay * n`` seconds before retry *n*.
    """

    def __init__(
        self,
        url: str,
        *,
        poll_interval: float = 60.0,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        timeout: float = 10.0,
        http_client: HttpClient | None = None,
        clock: Clock | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        self.url = url
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.events = events or EventEmitter()
        self._clock = clock or SystemClock()
        self._owns_http = http_client is None
        self._http = http_client or HttpxHttpClient(timeout=timeout)
        self._retry = TenacityRetryPolicy.linear(
            max_retries, retry_delay, retry_on=_RETRYABLE, on_retry=self._on_retry
        )
        self._cache: dict[str, Any] | None = None
        self._etag: str | None = None
        self._last_fetch: datetime | None = None
        self._retry_count = 0
        self._poll_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch_config(self) -> dict[str, Any] | None:
        """Fetch once (with retries); return the payload if it replaced the cache."""
        self._retry_count = 0
        try:
            fetched = await self._retry.execute_async(self._fetch_once)
        except _RETRYABLE as exc:
            logger.error("remote_config.fetch_failed", url=self.url, retries=self._retry_count, **exc.log_fields())
            self.events.emit("config-error", exc)
            self.events.emit("config-fetch-failed", {"error": exc, "retries": self._retry_count})
            return None

        if fetched is None:
            logger.debug("remote_config.not_modified", url=self.url)
            return None
        payload, etag = fetched.payload, fetched.etag
        if not self._has_changed(payload):
            self._etag = etag or self._etag
            return None

        problems = validate_remote_config(payload)
        if problems:
            logger.error("remote_config.invalid", url=self.url, problems=problems)
            self.events.emit(
                "config-error",
                RemoteConfigError("Invalid configuration", detail={"problems": problems}),
            )
            return None

        self._cache = dict(payload)
        self._etag = etag
        self._last_fetch = self._clock.now()
        logger.info(
            "remote_config.updated",
            url=self.url, version=payload.get("version"), flag_count=len(payload.get("flags") or {}),
        )
        self.events.emit("config-updated", self._cache)
        return self._cache

    async def refresh(self) -> dict[str, Any] | None:
        """Fetch ignoring the cached ETag."""
        self._etag = None
        return await self.fetch_config()

    async def _fetch_once(self) -> JsonDocument | None:
        etag = self._etag if self._cache is not None else None
        return await self._http.get_json(self.url, etag=etag, headers={"User-Agent": USER_AGENT})

    def _on_retry(self, attempt: int, exc: BaseException) -> None:
        self._retry_count = attempt
        logger.warning(
            "remote_config.retrying",
            url=self.url, attempt=attempt, max_retries=self.max_retries, error=str(exc),
        )
        self.events.emit("config-error", exc)

    def _has_changed(self, payload: Any) -> bool:
        if self._cache is None or not isinstance(payload, Mapping):
            return True
        return (
            payload.get("version") != self._cache.get("version")
            or payload.get("last_modified") != self._cache.get("last_modified")
            or _flags_fingerprint(payload) != _flags_fingerprint(self._cache)
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def start_polling(self) -> None:
        """Fetch now, then every ``poll_interval`` seconds, on a background task."""
        if self._poll_task is not None:
            return
        self._poll_task = asyncio.ensure_future(self._poll_loop())
        logger.info("remote_config.polling_started", url=self.url, interval=self.poll_interval)

    async def stop_polling(self) -> None:
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        try:
            await self._poll_task
        except asyncio.CancelledError:
            pass
        self._poll_task = None
        logger.info("remote_config.polling_stopped", url=self.url)

    async def update_poll_interval(self, seconds: float) -> None:
        self.poll_interval = seconds
        if self._poll_task is not None:
            await self.stop_polling()
            await self.start_polling()
        logger.info("remote_config.poll_interval_updated", interval=seconds)

    async def aclose(self) -> None:
        await self.stop_polling()
        if self._owns_http:
            await self._http.aclose()

    async def _poll_loop(self) -> None:
        while True:
            await self.fetch_config()
            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_config(self) -> dict[str, Any] | None:
        return self._cache

    def get_flag(self, name: str) -> dict[str, Any] | None:
        if self._cache is None:
            return None
        return (self._cache.get("flags") or {}).get(name)

    def get_status(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "last_fetch": self._last_fetch,
            "cache_version": self._cache.get("version") if self._cache else None,
            "poll_interval": self.poll_interval,
            "is_polling": self._poll_task is not None,
            "retry_count": self._retry_count,
            "has_cache": self._cache is not None,
        }


__all__ = ["RemoteConfigClient", "USER_AGENT", "validate_remote_config"]
