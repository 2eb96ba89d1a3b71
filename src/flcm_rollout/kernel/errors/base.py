"""BaseError – root of every error raised by flag evaluation and routing."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Carries a stable ``code`` next to the message.

    The code is what ends up in structured log events (see
    :meth:`log_fields`) and in router error bodies, so callers can match on
    it without parsing messages.  ``detail`` holds the flag / cohort /
    version the error concerns.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = detail or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload

    def log_fields(self) -> dict[str, Any]:
        """Flat key/values for a structlog event.

        ``detail`` keys are lifted to the top level; the error's own keys
        are prefixed so they never clash with the event's fields.
        """
        fields: dict[str, Any] = dict(self.detail)
        fields["error_code"] = self.code
        fields["error_message"] = self.message
        if self.cause is not None:
            fields["error_cause"] = repr(self.cause)
        return fields


__all__ = ["BaseError"]
