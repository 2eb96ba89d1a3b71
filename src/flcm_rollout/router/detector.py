"""Router – VersionDetector."""
from __future__ import annotations

from flcm_rollout.router.types import (
    VERSION_HEADER,
    RouterConfig,
    Version,
    VersionRequest,
    is_version,
)

V2_PATHS = ("/v2/", "/mentor/", "/creator/", "/publisher/", "/framework/", "/obsidian/")
V1_PATHS = ("/collector/", "/scholar/", "/agent/", "/v1/", "/legacy/")
FLAG_GATED_SEGMENTS = (
    ("mentor", "v2_mentor"),
    ("creator", "v2_creator"),
    ("publisher", "v2_publisher"),
    ("obsidian", "v2_obsidian"),
)


class VersionDetector:
    """Chooses the architecture version for a request.

    First match wins: explicit ``x-flcm-version`` header, the user's
    preferred version (when overrides are enabled), v2 then v1 path
    patterns, flag-gated path segments, and finally the configured default.
    """

    def __init__(self, config: RouterConfig) -> None:
        self.config = config

    def detect_version(self, request: VersionRequest) -> Version:
        header = request.header(VERSION_HEADER)
        if is_version(header):
            return header  # type: ignore[return-value]

        user = request.user
        if self.config.user_overrides_enabled and user is not None and is_version(user.preferred_version):
            return user.preferred_version  # type: ignore[return-value]

        return (
            self.detect_from_path(request.path)
            or self.detect_from_feature_flags(request.path)
            or self.config.default_version
        )

    @staticmethod
    def detect_from_path(path: str) -> Version | None:
        normalized = path.lower()
        if any(p in normalized for p in V2_PATHS):
            return "2.0"
        if any(p in normalized for p in V1_PATHS):
            return "1.0"
        return None

    def detect_from_feature_flags(self, path: str) -> Version | None:
        normalized = path.lower()
        for segment, flag in FLAG_GATED_SEGMENTS:
            if segment in normalized and self.config.feature_flags.get(flag):
                return "2.0"
        return None

    def is_v2_enabled(self) -> bool:
        return any(v for k, v in self.config.feature_flags.items() if k.startswith("v2_"))


__all__ = ["FLAG_GATED_SEGMENTS", "V1_PATHS", "V2_PATHS", "VersionDetector"]
