"""Router – RouterSettings and the core-config YAML loader.

The core config file looks like::

    flcm:
      defaultVersion: "1.0"
      userOverrides:
        enabled: true
      featureFlags:
        v2_mentor: false
"""
from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Mapping

from flcm_rollout.config.files import read_yaml, write_yaml
from flcm_rollout.config.settings import Settings
from flcm_rollout.config.validation import ConfigError, InvalidSettingValueError
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.router.types import DEFAULT_ROUTER_FLAGS, RouterConfig, is_version

logger = get_logger(__name__)


@dataclasses.dataclass
class RouterSettings(Settings):
    """``FLCM_ENVIRONMENT`` and ``FLCM_CONFIG_PATH``."""

    _prefix = "FLCM"

    environment: str = "production"
    config_path: str | None = None

    def _validate(self) -> None:
        if not self.environment:
            raise InvalidSettingValueError("environment", self.environment, "must not be empty")


def router_config_from_dict(data: Mapping[str, Any]) -> RouterConfig:
    """Build a :class:`RouterConfig` from a parsed core-config document."""
    flcm = data.get("flcm") or {}
    if not isinstance(flcm, Mapping):
        raise ConfigError("'flcm' must be a mapping")
    default_version = str(flcm.get("defaultVersion") or "1.0")
    if not is_version(default_version):
        raise ConfigError(f"Unsupported defaultVersion: {default_version!r}")
    overrides = flcm.get("userOverrides") or {}
    enabled = overrides.get("enabled")
    flags = dict(DEFAULT_ROUTER_FLAGS)
    flags.update({str(k): bool(v) for k, v in (flcm.get("featureFlags") or {}).items()})
    return RouterConfig(
        default_version=default_version,  # type: ignore[arg-type]
        user_overrides_enabled=True if enabled is None else bool(enabled),
        feature_flags=flags,
    )


def router_config_to_dict(config: RouterConfig) -> dict[str, Any]:
    return {
        "flcm": {
            "defaultVersion": config.default_version,
            "userOverrides": {"enabled": config.user_overrides_enabled},
            "featureFlags": dict(config.feature_flags),
        }
    }


def load_router_config(path: str | Path | None) -> RouterConfig:
    """Read the core config at *path*; a missing file yields the defaults."""
    if path is None or not Path(path).exists():
        logger.info("router.config_defaults", path=str(path) if path else None)
        return RouterConfig()
    return router_config_from_dict(read_yaml(path))


def save_router_config(path: str | Path, config: RouterConfig) -> None:
    write_yaml(path, router_config_to_dict(config))


__all__ = [
    "RouterSettings",
    "load_router_config",
    "router_config_from_dict",
    "router_config_to_dict",
    "save_router_config",
]
