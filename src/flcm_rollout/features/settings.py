"""Features – FlagSettings (``FLCM_FLAGS_*`` environment variables)."""
from __future__ import annotations

import dataclasses

from flcm_rollout.config.settings import Settings
from flcm_rollout.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class FlagSettings(Settings):
    """Where flags come from and how long evaluations stay cached.

    ``FLCM_FLAGS_CONFIG_PATH``
        YAML file with a top-level ``flags`` mapping.
    ``FLCM_FLAGS_REMOTE_URL``
        JSON endpoint polled for flag updates.
    """

    _prefix = "FLCM_FLAGS"

    config_path: str | None = None
    remote_url: str | None = None
    poll_interval_seconds: float = 60.0
    cache_ttl_seconds: float = 60.0

    def _validate(self) -> None:
        if self.poll_interval_seconds <= 0:
            raise InvalidSettingValueError("poll_interval_seconds", self.poll_interval_seconds, "must be > 0")
        if self.cache_ttl_seconds < 0:
            raise InvalidSettingValueError("cache_ttl_seconds", self.cache_ttl_seconds, "must be >= 0")


__all__ = ["FlagSettings"]
