"""Config files – YAML reading/writing for flag, cohort and router config."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from flcm_rollout.config.validation import ConfigError


def read_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping from *path*; an empty file yields ``{}``.

    Raises :class:`ConfigError` when the file cannot be read, is not valid
    YAML, or does not hold a mapping at the top level.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {path}", source=str(path), cause=exc) from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML: {path}", source=str(path), cause=exc) from exc
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping at the top of {path}, got {type(data).__name__}", source=str(path)
        )
    return data


def write_yaml(path: str | Path, data: dict[str, Any]) -> None:
    """Write *data* to *path*, creating parent directories as needed."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write config file: {path}", source=str(path), cause=exc) from exc


__all__ = ["read_yaml", "write_yaml"]
