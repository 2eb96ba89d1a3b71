"""Infrastructure errors – I/O failures against the remote config source."""

from __future__ import annotations

from typing import Any

from flcm_rollout.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a rule violation."""

    default_code = "infrastructure_error"


class SerializationError(InfrastructureError):
    """Failed to decode a payload (JSON from the wire, YAML from disk).

    ``payload_type`` (``"json"``, ``"yaml"``) is recorded in ``detail``.
    """

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        detail: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        merged = dict(detail or {})
        if payload_type is not None:
            merged["payload_type"] = payload_type
        super().__init__(message, detail=merged, **kwargs)
        self.payload_type = payload_type


class ExternalServiceError(InfrastructureError):
    """The remote config source answered with an error or could not be reached.

    ``service`` (usually the URL) and ``status_code`` are copied into
    ``detail`` so they show up in :meth:`log_fields`.
    """

    default_code = "external_service_error"

    def __init__(
        self,
        service: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        merged = {"service": service, **(detail or {})}
        if status_code is not None:
            merged["status_code"] = status_code
        super().__init__(message or f"External service '{service}' error", detail=merged, **kwargs)
        self.service = service
        self.status_code = status_code


__all__ = ["ExternalServiceError", "InfrastructureError", "SerializationError"]
