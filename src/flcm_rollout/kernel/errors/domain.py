"""Domain errors – bad flag/cohort/router input and unknown names."""

from __future__ import annotations

from typing import Any

from flcm_rollout.kernel.errors.base import BaseError


class DomainError(BaseError):
    default_code = "domain_error"


class ValidationError(DomainError):
    """A definition or update was rejected.

    ``errors`` lists the offending fields, one dict per field with at least a
    ``"field"`` key (``"rollout.percentage"``, ``"members"``...).
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    @classmethod
    def for_field(cls, field: str, message: str, **extra: Any) -> "ValidationError":
        """Single-field failure; the message is prefixed with *field*."""
        return cls(f"{field} {message}", errors=[{"field": field, "message": message, **extra}])

    @property
    def fields(self) -> list[str]:
        return [e["field"] for e in self.errors if "field" in e]

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base

    def log_fields(self) -> dict[str, Any]:
        fields = super().log_fields()
        if self.errors:
            fields["invalid_fields"] = self.fields
        return fields


class NotFoundError(DomainError):
    """No flag, cohort or version is registered under ``identifier``."""

    default_code = "not_found"

    def __init__(self, resource: str, identifier: Any = None, **kwargs: Any) -> None:
        if identifier is None:
            msg = f"{resource} not found"
        else:
            msg = f"{resource} '{identifier}' not found"
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


__all__ = ["DomainError", "NotFoundError", "ValidationError"]
