"""Features – attribute operators shared by cohort rules and flag conditions.

Every operator answers ``False`` instead of raising when the attribute is
missing or the operands cannot be compared.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Mapping

from flcm_rollout.observability.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


def _equals(actual: Any, expected: Any) -> bool:
    # True must not match 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    return actual == expected


def _greater_than(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return False
    try:
        return actual > expected
    except TypeError:
        return False


def _less_than(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return False
    try:
        return actual < expected
    except TypeError:
        return False


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple, set, frozenset)):
        return expected in actual
    if isinstance(actual, str):
        return str(expected) in actual
    return str(expected) in str(actual)


def _in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple, set, frozenset)):
        return False
    return actual in expected


def _regex(actual: Any, expected: Any) -> bool:
    try:
        return re.search(str(expected), str(actual)) is not None
    except re.error:
        logger.warning("operators.invalid_regex", pattern=str(expected))
        return False


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": _equals,
    "not_equals": lambda actual, expected: not _equals(actual, expected),
    "greater_than": _greater_than,
    "less_than": _less_than,
    "contains": _contains,
    "in": _in,
    "regex": _regex,
}


def apply_operator(operator: str, actual: Any, expected: Any) -> bool:
    """Apply *operator* to an attribute value; unknown operators are ``False``."""
    fn = OPERATORS.get(operator)
    if fn is None:
        logger.warning("operators.unknown_operator", operator=operator)
        return False
    return fn(actual, expected)


def matches(attributes: Mapping[str, Any] | None, attribute: str, operator: str, expected: Any) -> bool:
    """Evaluate one predicate against *attributes*.

    A missing attribute never matches, except for ``not_equals`` where an
    absent value is by definition different.
    """
    actual = (attributes or {}).get(attribute, _MISSING)
    if actual is _MISSING or actual is None:
        return operator == "not_equals" and expected is not None
    return apply_operator(operator, actual, expected)


__all__ = ["OPERATORS", "apply_operator", "matches"]
