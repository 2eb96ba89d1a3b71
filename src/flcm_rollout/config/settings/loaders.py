"""Config settings – EnvSettingsLoader, DotenvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
from typing import Any, TypeVar

from dotenv import load_dotenv

from flcm_rollout.config.settings.base import Settings
from flcm_rollout.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

T = TypeVar("T", bound=Settings)

_TRUTHY = ("1", "true", "yes", "on")


def coerce_setting(raw: str, annotation: Any) -> Any:
    """Convert an environment string to the field's declared type.

    Annotations are strings here (``from __future__ import annotations``).
    ``X | None`` maps ``""`` to ``None``; ``list[str]`` is comma separated.
    """
    hint = str(getattr(annotation, "__name__", annotation))
    if hint.endswith("| None"):
        if raw == "":
            return None
        hint = hint.removesuffix("| None").strip()
    if hint == "bool":
        return raw.lower() in _TRUTHY
    if hint == "int":
        return int(raw)
    if hint == "float":
        return float(raw)
    if hint.startswith("list"):
        return [v.strip() for v in raw.split(",") if v.strip()]
    return raw


class SettingsLoader(abc.ABC):
    """Port: produce a settings instance from one source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    def load(self, settings_class: type[T]) -> T:
        required = settings_class.required_fields()
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(settings_class):
            env_key = settings_class.env_var(field.name)
            raw = os.environ.get(env_key)
            if raw is None:
                if field.name in required:
                    raise MissingRequiredSettingError(env_key)
                continue
            try:
                kwargs[field.name] = coerce_setting(raw, field.type)
            except ValueError as exc:
                raise InvalidSettingValueError(env_key, raw, str(exc)) from exc

        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to load {settings_class.__name__}: {exc}") from exc


class DotenvSettingsLoader(EnvSettingsLoader):
    """Read a ``.env`` file into the environment, then behave like ``EnvSettingsLoader``.

    Variables already set in the process win unless *override* is true.
    """

    def __init__(self, env_file: str = ".env", override: bool = False) -> None:
        self._env_file = env_file
        self._override = override

    def load(self, settings_class: type[T]) -> T:
        load_dotenv(self._env_file, override=self._override)
        return super().load(settings_class)


__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader", "coerce_setting"]
