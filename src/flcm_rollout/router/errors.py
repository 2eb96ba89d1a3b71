"""Router – VersionError and the error-to-response funnel."""
from __future__ import annotations

from typing import Any, Sequence

from flcm_rollout.kernel.errors import ApplicationError, TimeoutError as AppTimeoutError, ValidationError
from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.router.types import Version, VersionRequest, VersionResponse

logger = get_logger(__name__)

FALLBACK_VERSION: Version = "1.0"


class VersionError(ApplicationError):
    """Routing failure carrying the HTTP status to answer with."""

    default_code = "version_error"

    def __init__(self, message: str, status_code: int = 500, version: Version | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.version = version


class VersionRouterErrorHandler:
    """Turns any exception raised while routing into a :class:`VersionResponse`.

    ``handle_error`` never raises.  Unexpected errors expose their message
    only outside ``production``.
    """

    def __init__(self, environment: str = "production", *, clock: Clock | None = None) -> None:
        self.environment = environment
        self._clock = clock or SystemClock()

    def handle_error(self, exc: BaseException, request: VersionRequest) -> VersionResponse:
        logger.error(
            "router.error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.path,
            method=request.method,
            user_id=request.user.id if request.user else None,
        )
        if isinstance(exc, VersionError):
            return VersionResponse(
                status=exc.status_code,
                body={"error": exc.message, "type": "version_error", "timestamp": self._timestamp()},
                version=exc.version or FALLBACK_VERSION,
            )
        if isinstance(exc, ValidationError):
            return VersionResponse(
                status=400,
                body={
                    "error": "Validation error",
                    "message": exc.message,
                    "type": "validation_error",
                    "timestamp": self._timestamp(),
                },
                version=FALLBACK_VERSION,
            )
        if isinstance(exc, (AppTimeoutError, TimeoutError)):
            return VersionResponse(
                status=504,
                body={
                    "error": "Request timeout",
                    "message": "The request took too long to process",
                    "type": "timeout_error",
                    "timestamp": self._timestamp(),
                },
                version=FALLBACK_VERSION,
            )
        body: dict[str, Any] = {"error": "Internal server error", "timestamp": self._timestamp()}
        if self.environment != "production":
            body["message"] = getattr(exc, "message", None) or str(exc)
        return VersionResponse(status=500, body=body, version=FALLBACK_VERSION)

    @staticmethod
    def validate_version_compatibility(requested: str, available: Sequence[str]) -> None:
        if requested not in available:
            raise VersionError(f"Version {requested} is not available", 404, requested)  # type: ignore[arg-type]

    def handle_migration_error(self, from_version: Version, to_version: Version, exc: BaseException) -> VersionResponse:
        logger.error("router.migration_failed", from_version=from_version, to_version=to_version, error=str(exc))
        return VersionResponse(
            status=500,
            body={
                "error": "Version migration failed",
                "message": f"Failed to migrate from {from_version} to {to_version}",
                "type": "migration_error",
                "timestamp": self._timestamp(),
            },
            version=from_version,
        )

    def _timestamp(self) -> str:
        return self._clock.now().isoformat()


__all__ = ["FALLBACK_VERSION", "VersionError", "VersionRouterErrorHandler"]
