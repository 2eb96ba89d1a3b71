"""Config validation errors.

``source`` names where the bad value came from: an environment variable,
a YAML file path or a ``.env`` file.
"""
from __future__ import annotations

from typing import Any

from flcm_rollout.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    default_code = "config_error"

    def __init__(self, message: str, *, source: str | None = None, **kwargs: Any) -> None:
        detail = dict(kwargs.pop("detail", None) or {})
        if source is not None:
            detail["source"] = source
        super().__init__(message, detail=detail, **kwargs)
        self.source = source


class MissingRequiredSettingError(ConfigError):
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"Required setting '{setting_name}' is missing", source=setting_name)
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """Present but out of range or of the wrong type."""

    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}",
            source=setting_name,
            detail={"reason": reason},
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
