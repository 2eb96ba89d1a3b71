"""Application-layer errors."""

from __future__ import annotations

from flcm_rollout.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting failure raised while serving a request."""

    default_code = "application_error"


class TimeoutError(ApplicationError):  # noqa: A001
    """Operation timed out."""

    default_code = "timeout"


__all__ = ["ApplicationError", "TimeoutError"]
