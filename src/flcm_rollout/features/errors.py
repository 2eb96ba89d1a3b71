"""Features – error types raised by the flag engine."""
from __future__ import annotations

from typing import Any

from flcm_rollout.kernel.errors import ApplicationError, InfrastructureError, NotFoundError


class FeatureFlagError(ApplicationError):
    """Base class for feature-flag failures."""

    default_code = "feature_flag_error"


class FlagNotFoundError(NotFoundError):
    """A management operation named a flag that is not registered."""

    default_code = "flag_not_found"

    def __init__(self, flag_name: str, **kwargs: Any) -> None:
        super().__init__("Feature flag", flag_name, **kwargs)
        self.flag_name = flag_name


class EvaluationError(FeatureFlagError):
    """Raised internally when a flag cannot be evaluated."""

    default_code = "evaluation_error"

    def __init__(self, flag_name: str, message: str, **kwargs: Any) -> None:
        super().__init__(message, detail={"flag": flag_name}, **kwargs)
        self.flag_name = flag_name


class RemoteConfigError(InfrastructureError):
    """Remote flag configuration could not be fetched or was invalid."""

    default_code = "remote_config_error"


__all__ = ["EvaluationError", "FeatureFlagError", "FlagNotFoundError", "RemoteConfigError"]
