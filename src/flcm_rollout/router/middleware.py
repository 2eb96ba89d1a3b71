"""Router – middleware chain and built-in middleware."""
from __future__ import annotations

import abc
import asyncio
import time
from typing import Awaitable, Callable

from flcm_rollout.kernel.errors import TimeoutError as AppTimeoutError
from flcm_rollout.observability.logging import get_logger, request_log_context
from flcm_rollout.observability.metrics import Metrics, NoopMetrics
from flcm_rollout.router.detector import VersionDetector
from flcm_rollout.router.types import (
    ROUTED_VERSION_HEADER,
    VERSION_HEADER,
    VersionRequest,
    VersionResponse,
    is_version,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"

Handler = Callable[[VersionRequest], Awaitable[VersionResponse]]
Next = Callable[[VersionRequest], Awaitable[VersionResponse]]


class Middleware(abc.ABC):
    """Single node in the routing chain; may answer without calling ``next_``."""

    @abc.abstractmethod
    async def __call__(self, request: VersionRequest, next_: Next) -> VersionResponse: ...


class VersionMiddleware:
    """Detects the version, then runs the middleware onion around its handler.

    The first middleware registered with :meth:`use` is the outermost.
    """

    def __init__(self, detector: VersionDetector) -> None:
        self.detector = detector
        self._middlewares: list[Middleware] = []

    def use(self, middleware: Middleware) -> "VersionMiddleware":
        """Append a middleware (fluent API)."""
        self._middlewares.append(middleware)
        return self

    @property
    def middlewares(self) -> list[Middleware]:
        return list(self._middlewares)

    async def process(
        self, request: VersionRequest, v1_handler: Handler, v2_handler: Handler
    ) -> VersionResponse:
        start = time.perf_counter()
        with request_log_context(
            request_id=request.header(REQUEST_ID_HEADER),
            user_id=request.user.id if request.user else None,
        ):
            try:
                version = self.detector.detect_version(request)
                request.headers[ROUTED_VERSION_HEADER] = version
                logger.info("router.routing", path=request.path, method=request.method, version=version)

                handler = v2_handler if version == "2.0" else v1_handler
                response = await self._chain(handler)(request)
                response.version = version
                response.processing_time = (time.perf_counter() - start) * 1000
                return response
            except Exception as exc:
                logger.error(
                    "router.routing_failed", path=request.path, method=request.method, error=str(exc)
                )
                raise

    def _chain(self, handler: Handler) -> Handler:
        chain = handler
        for mw in reversed(self._middlewares):
            _next = chain
            _mw = mw

            async def _wrap(req: VersionRequest, *, _n: Handler = _next, _m: Middleware = _mw) -> VersionResponse:
                return await _m(req, _n)

            chain = _wrap
        return chain


# ---------------------------------------------------------------------------
# Built-in middleware
# ---------------------------------------------------------------------------


class VersionValidationMiddleware(Middleware):
    """Reject an explicit version header that names no known version."""

    async def __call__(self, request: VersionRequest, next_: Next) -> VersionResponse:
        requested = request.header(VERSION_HEADER)
        if requested and not is_version(requested):
            return VersionResponse(status=400, body={"error": f"Invalid version: {requested}"}, version="1.0")
        return await next_(request)


class MetricsMiddleware(Middleware):
    """Record request counters and latency per routed version."""

    def __init__(self, metrics: Metrics | None = None) -> None:
        metrics = metrics or NoopMetrics()
        self._requests = metrics.counter("router.requests", "Routed requests")
        self._latency = metrics.histogram("router.latency_ms", "Routed request latency", "ms")
        self._errors = metrics.counter("router.errors", "Routed request failures")

    async def __call__(self, request: VersionRequest, next_: Next) -> VersionResponse:
        labels = {
            "version": request.headers.get(ROUTED_VERSION_HEADER, "unknown"),
            "method": request.method,
        }
        try:
            with self._latency.measure(labels):
                response = await next_(request)
        except Exception:
            self._errors.add(1.0, labels)
            raise
        self._requests.add(1.0, {**labels, "status": str(response.status)})
        return response


class LoggingMiddleware(Middleware):
    """Log request completion with timing."""

    async def __call__(self, request: VersionRequest, next_: Next) -> VersionResponse:
        start = time.perf_counter()
        version = request.headers.get(ROUTED_VERSION_HEADER)
        try:
            response = await next_(request)
        except Exception:
            duration = (time.perf_counter() - start) * 1000
            logger.error(
                "router.request_failed",
                path=request.path, method=request.method, version=version, duration_ms=round(duration, 2),
            )
            raise
        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "router.request_completed",
            path=request.path, method=request.method, version=version,
            status=response.status, duration_ms=round(duration, 2),
        )
        return response


class TimeoutMiddleware(Middleware):
    """Raise ``TimeoutError`` if the handler exceeds *timeout_seconds*."""

    def __init__(self, timeout_seconds: float) -> None:
        self._timeout = timeout_seconds

    async def __call__(self, request: VersionRequest, next_: Next) -> VersionResponse:
        try:
            return await asyncio.wait_for(next_(request), timeout=self._timeout)
        except TimeoutError as exc:
            raise AppTimeoutError(f"Request timed out after {self._timeout}s") from exc


__all__ = [
    "Handler",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "Middleware",
    "Next",
    "REQUEST_ID_HEADER",
    "TimeoutMiddleware",
    "VersionMiddleware",
    "VersionValidationMiddleware",
]
