"""Version router – dual-architecture request routing."""
from flcm_rollout.router.detector import VersionDetector
from flcm_rollout.router.errors import FALLBACK_VERSION, VersionError, VersionRouterErrorHandler
from flcm_rollout.router.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    Middleware,
    TimeoutMiddleware,
    VersionMiddleware,
    VersionValidationMiddleware,
)
from flcm_rollout.router.router import VersionRouter
from flcm_rollout.router.settings import RouterSettings, load_router_config, save_router_config
from flcm_rollout.router.types import (
    HandlerHealth,
    RequestUser,
    RouterConfig,
    SUPPORTED_VERSIONS,
    Version,
    VersionHandler,
    VersionRequest,
    VersionResponse,
)

__all__ = [
    "FALLBACK_VERSION",
    "HandlerHealth",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "Middleware",
    "RequestUser",
    "RouterConfig",
    "RouterSettings",
    "SUPPORTED_VERSIONS",
    "TimeoutMiddleware",
    "Version",
    "VersionDetector",
    "VersionError",
    "VersionHandler",
    "VersionMiddleware",
    "VersionRequest",
    "VersionResponse",
    "VersionRouter",
    "VersionRouterErrorHandler",
    "VersionValidationMiddleware",
    "load_router_config",
    "save_router_config",
]
