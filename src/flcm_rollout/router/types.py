"""Router – request/response value objects and the handler port."""
from __future__ import annotations

import abc
import dataclasses
from datetime import datetime
from typing import Any, Literal, Mapping

from flcm_rollout.kernel.time import utc_now

Version = Literal["1.0", "2.0"]
SUPPORTED_VERSIONS: tuple[Version, ...] = ("1.0", "2.0")
VERSION_HEADER = "x-flcm-version"
ROUTED_VERSION_HEADER = "x-routed-version"

DEFAULT_ROUTER_FLAGS: dict[str, bool] = {
    "v2_mentor": False,
    "v2_creator": False,
    "v2_publisher": False,
    "v2_obsidian": False,
}


def is_version(value: Any) -> bool:
    return value in SUPPORTED_VERSIONS


@dataclasses.dataclass(frozen=True)
class RequestUser:
    id: str
    preferred_version: str | None = None


@dataclasses.dataclass
class VersionRequest:
    """Incoming request; ``headers`` is mutated to record the routed version."""
    path: str
    method: str = "GET"
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    user: RequestUser | None = None
    body: Any = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclasses.dataclass
class VersionResponse:
    status: int
    body: Any = None
    version: Version | None = None
    processing_time: float | None = None


@dataclasses.dataclass(frozen=True)
class RouterConfig:
    default_version: Version = "1.0"
    user_overrides_enabled: bool = True
    feature_flags: Mapping[str, bool] = dataclasses.field(
        default_factory=lambda: dict(DEFAULT_ROUTER_FLAGS)
    )


@dataclasses.dataclass(frozen=True)
class HandlerHealth:
    version: Version
    status: Literal["healthy", "degraded", "unhealthy"]
    uptime: float | None = None
    last_check: datetime = dataclasses.field(default_factory=utc_now)
    error: str | None = None


class VersionHandler(abc.ABC):
    """Port: serves requests for one architecture version."""

    @abc.abstractmethod
    async def handle(self, request: VersionRequest) -> VersionResponse: ...

    @abc.abstractmethod
    async def health_check(self) -> HandlerHealth: ...


__all__ = [
    "DEFAULT_ROUTER_FLAGS",
    "HandlerHealth",
    "ROUTED_VERSION_HEADER",
    "RequestUser",
    "RouterConfig",
    "SUPPORTED_VERSIONS",
    "VERSION_HEADER",
    "Version",
    "VersionHandler",
    "VersionRequest",
    "VersionResponse",
    "is_version",
]
