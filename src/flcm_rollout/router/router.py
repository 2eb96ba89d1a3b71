"""Router – VersionRouter facade."""
from __future__ import annotations

import dataclasses
from typing import Any

from flcm_rollout.config.settings import EnvSettingsLoader, SettingsFactory
from flcm_rollout.kernel.errors import ValidationError
from flcm_rollout.kernel.time import Clock
from flcm_rollout.observability.logging import get_logger
from flcm_rollout.observability.metrics import Metrics
from flcm_rollout.router.detector import VersionDetector
from flcm_rollout.router.errors import VersionError, VersionRouterErrorHandler
from flcm_rollout.router.middleware import (
    MetricsMiddleware,
    Middleware,
    VersionMiddleware,
    VersionValidationMiddleware,
)
from flcm_rollout.router.settings import RouterSettings, load_router_config
from flcm_rollout.router.types import (
    HandlerHealth,
    RouterConfig,
    Version,
    VersionHandler,
    VersionRequest,
    VersionResponse,
    is_version,
)

logger = get_logger(__name__)


class VersionRouter:
    """Routes each request to the 1.0 or 2.0 handler.

    :meth:`route` always returns a :class:`VersionResponse`; every failure,
    including missing handlers, is answered by the error handler.
    """

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        metrics: Metrics | None = None,
        error_handler: VersionRouterErrorHandler | None = None,
        environment: str = "production",
        clock: Clock | None = None,
    ) -> None:
        self._config = config or RouterConfig()
        self._middleware = VersionMiddleware(VersionDetector(self._config))
        self._error_handler = error_handler or VersionRouterErrorHandler(environment, clock=clock)
        self._v1: VersionHandler | None = None
        self._v2: VersionHandler | None = None

        self._middleware.use(VersionValidationMiddleware())
        self._middleware.use(MetricsMiddleware(metrics))

        logger.info(
            "router.initialized",
            default_version=self._config.default_version,
            user_overrides=self._config.user_overrides_enabled,
            v2_enabled=self._middleware.detector.is_v2_enabled(),
        )

    @classmethod
    def from_settings(cls, settings: RouterSettings | None = None, **kwargs: Any) -> "VersionRouter":
        settings = settings or SettingsFactory.create(RouterSettings, [EnvSettingsLoader()])
        return cls(load_router_config(settings.config_path), environment=settings.environment, **kwargs)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_v1_handler(self, handler: VersionHandler) -> None:
        self._v1 = handler
        logger.info("router.handler_registered", version="1.0")

    def register_v2_handler(self, handler: VersionHandler) -> None:
        self._v2 = handler
        logger.info("router.handler_registered", version="2.0")

    def use(self, middleware: Middleware) -> "VersionRouter":
        """Append *middleware* after the built-in validation and metrics layers."""
        self._middleware.use(middleware)
        return self

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def route(self, request: VersionRequest) -> VersionResponse:
        try:
            if self._v1 is None or self._v2 is None:
                raise VersionError("Version handlers not properly initialized", 500)
            return await self._middleware.process(request, self._v1.handle, self._v2.handle)
        except Exception as exc:  # noqa: BLE001
            return self._error_handler.handle_error(exc, request)

    async def health_check(self) -> dict[str, Any]:
        """``{"overall": ..., "versions": {"1.0": HandlerHealth, ...}}``.

        Healthy when every registered handler is healthy, unhealthy when
        every one is unhealthy (or none is registered), degraded otherwise.
        """
        versions: dict[Version, HandlerHealth] = {}
        for version, handler in (("1.0", self._v1), ("2.0", self._v2)):
            if handler is None:
                continue
            try:
                versions[version] = await handler.health_check()
            except Exception as exc:  # noqa: BLE001
                logger.warning("router.health_check_failed", version=version, error=str(exc))
                versions[version] = HandlerHealth(version=version, status="unhealthy", error=str(exc))

        statuses = [h.status for h in versions.values()]
        if not statuses or all(s == "unhealthy" for s in statuses):
            overall = "unhealthy"
        elif all(s == "healthy" for s in statuses):
            overall = "healthy"
        else:
            overall = "degraded"
        return {"overall": overall, "versions": versions}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, **changes: Any) -> RouterConfig:
        """Replace fields of the router config and rebuild the detector."""
        unknown = set(changes) - {f.name for f in dataclasses.fields(RouterConfig)}
        if unknown:
            raise ValidationError(
                f"Unknown router config fields: {sorted(unknown)}",
                errors=[{"field": f, "message": "unknown"} for f in sorted(unknown)],
            )
        if "default_version" in changes and not is_version(changes["default_version"]):
            raise ValidationError.for_field(
                "default_version", "is not a supported version", value=changes["default_version"]
            )
        if "feature_flags" in changes:
            changes["feature_flags"] = dict(changes["feature_flags"])
        self._config = dataclasses.replace(self._config, **changes)
        self._middleware.detector = VersionDetector(self._config)
        logger.info("router.config_updated", changes=sorted(changes))
        return self._config

    def get_config(self) -> RouterConfig:
        return self._config

    @property
    def detector(self) -> VersionDetector:
        return self._middleware.detector


__all__ = ["VersionRouter"]
