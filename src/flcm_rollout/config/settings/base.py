"""Config settings – Settings base class.

Each component owns a dataclass of tunables read from ``<PREFIX>_<FIELD>``
environment variables: ``FlagSettings`` (``FLCM_FLAGS_*``) and
``RouterSettings`` (``FLCM_*``).
"""
from __future__ import annotations

import dataclasses
from typing import Any, ClassVar


@dataclasses.dataclass
class Settings:
    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to reject out-of-range values with ``InvalidSettingValueError``."""

    @classmethod
    def env_var(cls, field_name: str) -> str:
        """``FlagSettings.env_var("cache_ttl_seconds") == "FLCM_FLAGS_CACHE_TTL_SECONDS"``."""
        return f"{cls._prefix}_{field_name}".upper().lstrip("_")

    @classmethod
    def field_defaults(cls) -> dict[str, Any]:
        defaults: dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            if field.default is not dataclasses.MISSING:
                defaults[field.name] = field.default
            elif field.default_factory is not dataclasses.MISSING:
                defaults[field.name] = field.default_factory()
        return defaults

    @classmethod
    def required_fields(cls) -> list[str]:
        return [f.name for f in dataclasses.fields(cls) if f.name not in cls.field_defaults()]

    def describe(self) -> dict[str, Any]:
        """Values keyed by environment variable name, for startup logs."""
        return {self.env_var(f.name): getattr(self, f.name) for f in dataclasses.fields(self)}


__all__ = ["Settings"]
