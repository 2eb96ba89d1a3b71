"""Observability – structured logging helpers."""
from flcm_rollout.observability.logging.factory import JsonLoggerFactory
from flcm_rollout.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter
from flcm_rollout.observability.logging.processors import get_logger, request_log_context

__all__ = [
    "DEFAULT_SENSITIVE_FIELDS",
    "JsonLoggerFactory",
    "SensitiveFieldsFilter",
    "get_logger",
    "request_log_context",
]
