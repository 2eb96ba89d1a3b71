"""Config settings – SettingsFactory."""
from __future__ import annotations

import dataclasses
from typing import Any, Sequence, TypeVar

from flcm_rollout.config.settings.base import Settings
from flcm_rollout.config.settings.loaders import SettingsLoader
from flcm_rollout.config.validation.errors import ConfigError, MissingRequiredSettingError
from flcm_rollout.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=Settings)


class SettingsFactory:
    """Layer several loaders and explicit overrides into one settings object.

    Later loaders win, but only for values that differ from the field
    default; *overrides* win over everything.  A loader failing with
    :class:`ConfigError` (e.g. a required variable it cannot see) is skipped.
    """

    @staticmethod
    def create(
        settings_cls: type[T],
        loaders: Sequence[SettingsLoader] | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> T:
        defaults = settings_cls.field_defaults()
        merged: dict[str, Any] = {}

        for loader in loaders or []:
            try:
                instance = loader.load(settings_cls)
            except ConfigError as exc:
                logger.debug("settings.loader_skipped", loader=type(loader).__name__, error=exc.message)
                continue
            for field in dataclasses.fields(instance):
                value = getattr(instance, field.name)
                if field.name not in merged or value != defaults.get(field.name):
                    merged[field.name] = value

        merged.update(overrides or {})

        missing = [name for name in settings_cls.required_fields() if name not in merged]
        if missing:
            raise MissingRequiredSettingError(missing[0])

        try:
            settings = settings_cls(**merged)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to construct {settings_cls.__name__}: {exc}") from exc
        logger.debug("settings.loaded", settings=settings_cls.__name__, values=settings.describe())
        return settings


__all__ = ["SettingsFactory"]
