"""Observability – logger access and per-request log context."""
from __future__ import annotations

import contextlib
from typing import Any, Iterator

import structlog


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a structlog logger for *name* with *initial_values* bound."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


@contextlib.contextmanager
def request_log_context(**values: Any) -> Iterator[dict[str, Any]]:
    """Bind *values* to every log event emitted inside the block.

    ``None`` values are dropped.  Relies on
    ``structlog.contextvars.merge_contextvars`` being in the processor chain
    (:class:`JsonLoggerFactory` installs it), and the binding is confined to
    the current task.
    """
    bound = {k: v for k, v in values.items() if v is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield bound


__all__ = ["get_logger", "request_log_context"]
