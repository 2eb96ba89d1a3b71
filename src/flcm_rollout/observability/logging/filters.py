"""Observability – SensitiveFieldsFilter.

Evaluation contexts and routed requests carry caller-supplied attributes and
headers.  Values under sensitive keys are masked before an event is rendered.
"""
from __future__ import annotations

from typing import Any

DEFAULT_SENSITIVE_FIELDS: frozenset[str] = frozenset({
    "password", "secret", "token", "api_key", "apikey", "authorization",
    "cookie", "email", "phone", "ip_address",
})


def _normalise(key: Any) -> str:
    return str(key).lower().replace("-", "_")


class SensitiveFieldsFilter:
    """Mask sensitive values; usable directly as a structlog processor.

    A key is sensitive when, lower-cased with ``-`` read as ``_``, it equals
    one of the configured names or ends with ``_<name>`` (``access_token``,
    ``X-Api-Key``, ``user_email``).
    """

    REDACTED = "[REDACTED]"

    def __init__(self, sensitive_fields: frozenset[str] | None = None) -> None:
        self._fields = frozenset(_normalise(f) for f in (sensitive_fields or DEFAULT_SENSITIVE_FIELDS))

    def is_sensitive(self, key: Any) -> bool:
        name = _normalise(key)
        return name in self._fields or any(name.endswith("_" + f) for f in self._fields)

    def redact(self, data: dict[str, Any]) -> dict[str, Any]:
        """Top-level keys only."""
        return {k: (self.REDACTED if self.is_sensitive(k) else v) for k, v in data.items()}

    def redact_deep(self, data: dict[str, Any]) -> dict[str, Any]:
        """Redact nested dicts, including dicts inside lists and tuples."""
        return {k: (self.REDACTED if self.is_sensitive(k) else self._walk(v)) for k, v in data.items()}

    def _walk(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.redact_deep(value)
        if isinstance(value, (list, tuple)):
            return type(value)(self._walk(v) for v in value)
        return value

    def __call__(self, logger: Any, method: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG002
        return self.redact_deep(event_dict)


__all__ = ["DEFAULT_SENSITIVE_FIELDS", "SensitiveFieldsFilter"]
