"""Features – flag, cohort and evaluation value objects.

Every type that crosses a config or wire boundary has ``from_dict`` /
``to_dict`` so YAML files, remote payloads and cohort exports share one
shape::

    flags:
      v2_mentor_layer:
        description: Enable 2.0 Mentor layer
        default: false
        dependencies: []
        conditions:
          - {attribute: plan_type, operator: equals, value: enterprise}
        rollout:
          percentage: 10
          cohorts: {beta_testers: true}
        variants:
          - {name: full_library, weight: 50}
        error_threshold: {rate: 0.05, window: 300, min_samples: 10}
"""
from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Mapping

from flcm_rollout.kernel.errors import ValidationError
from flcm_rollout.kernel.time import utc_now


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid timestamp: {value!r}") from exc
    return utc_now()


# ---------------------------------------------------------------------------
# Flag building blocks
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class Condition:
    """Attribute predicate; all conditions of a flag must hold."""
    attribute: str
    operator: str
    value: Any = None
    negate: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Condition":
        data = _require_mapping(data, "condition")
        if "attribute" not in data or "operator" not in data:
            raise ValidationError("condition requires 'attribute' and 'operator'")
        return cls(
            attribute=str(data["attribute"]),
            operator=str(data["operator"]),
            value=data.get("value"),
            negate=bool(data.get("negate", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"attribute": self.attribute, "operator": self.operator, "value": self.value}
        if self.negate:
            out["negate"] = True
        return out


@dataclasses.dataclass(frozen=True)
class Rollout:
    """Percentage rollout plus cohort overrides (checked in declaration order)."""
    percentage: float | None = None
    cohorts: Mapping[str, bool] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rollout":
        data = _require_mapping(data, "rollout")
        percentage = data.get("percentage")
        if percentage is not None:
            if not _is_number(percentage) or not 0 <= percentage <= 100:
                raise ValidationError.for_field(
                    "rollout.percentage", "must be a number in [0, 100]", value=percentage
                )
        cohorts = _require_mapping(data.get("cohorts") or {}, "rollout.cohorts")
        return cls(percentage=percentage, cohorts={str(k): bool(v) for k, v in cohorts.items()})

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.percentage is not None:
            out["percentage"] = self.percentage
        if self.cohorts:
            out["cohorts"] = dict(self.cohorts)
        return out


@dataclasses.dataclass(frozen=True)
class FlagVariant:
    name: str
    weight: float = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FlagVariant":
        data = _require_mapping(data, "variant")
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise ValidationError.for_field("variants.name", "must be a non-empty string", value=name)
        weight = data.get("weight", 0)
        if not _is_number(weight) or weight < 0:
            raise ValidationError.for_field("variants.weight", "must be a non-negative number", value=weight)
        return cls(name=name, weight=weight)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "weight": self.weight}


@dataclasses.dataclass(frozen=True)
class ErrorThreshold:
    """Circuit-breaker trip point: ``rate`` over ``window`` seconds."""
    rate: float
    window: float
    min_samples: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ErrorThreshold":
        data = _require_mapping(data, "error_threshold")
        try:
            return cls(
                rate=float(data["rate"]),
                window=float(data["window"]),
                min_samples=int(data["min_samples"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid error_threshold: {dict(data)!r}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {"rate": self.rate, "window": self.window, "min_samples": self.min_samples}


# ---------------------------------------------------------------------------
# FeatureFlag
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class FeatureFlag:
    """Definition of a togglable capability.

    ``enabled`` is the kill-switch: ``False`` forces the flag off for every
    user (written by ``FeatureFlagManager.rollback``); ``None`` and ``True``
    leave evaluation to the rollout rules.
    """
    name: str
    description: str = ""
    default: bool = False
    dependencies: tuple[str, ...] = ()
    conditions: tuple[Condition, ...] = ()
    rollout: Rollout | None = None
    variants: tuple[FlagVariant, ...] = ()
    error_threshold: ErrorThreshold | None = None
    enabled: bool | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, name: str | None = None) -> "FeatureFlag":
        data = _require_mapping(data, "flag")
        flag_name = data.get("name") or name
        if not flag_name or not isinstance(flag_name, str):
            raise ValidationError("flag requires a non-empty 'name'")
        default = data.get("default", False)
        if not isinstance(default, bool):
            raise ValidationError(f"flag '{flag_name}': 'default' must be a boolean")
        rollout = data.get("rollout")
        threshold = data.get("error_threshold")
        enabled = data.get("enabled")
        return cls(
            name=flag_name,
            description=str(data.get("description") or ""),
            default=default,
            dependencies=tuple(str(d) for d in data.get("dependencies") or ()),
            conditions=tuple(Condition.from_dict(c) for c in data.get("conditions") or ()),
            rollout=Rollout.from_dict(rollout) if rollout is not None else None,
            variants=tuple(FlagVariant.from_dict(v) for v in data.get("variants") or ()),
            error_threshold=ErrorThreshold.from_dict(threshold) if threshold is not None else None,
            enabled=None if enabled is None else bool(enabled),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "default": self.default,
        }
        if self.dependencies:
            out["dependencies"] = list(self.dependencies)
        if self.conditions:
            out["conditions"] = [c.to_dict() for c in self.conditions]
        if self.rollout is not None:
            out["rollout"] = self.rollout.to_dict()
        if self.variants:
            out["variants"] = [v.to_dict() for v in self.variants]
        if self.error_threshold is not None:
            out["error_threshold"] = self.error_threshold.to_dict()
        if self.enabled is not None:
            out["enabled"] = self.enabled
        return out

    def merge(self, partial: Mapping[str, Any]) -> "FeatureFlag":
        """Return a copy with the top-level keys of *partial* replaced.

        Nested blocks (``rollout``, ``variants`` …) are replaced as a whole,
        never deep-merged.  Values may be raw dicts or model instances.
        """
        data = self.to_dict()
        for key, value in partial.items():
            data[key] = _to_plain(value)
        data["name"] = self.name
        return FeatureFlag.from_dict(data)


def _to_plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Cohorts
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class CohortRule:
    attribute: str
    operator: str
    value: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CohortRule":
        data = _require_mapping(data, "cohort rule")
        if "attribute" not in data or "operator" not in data:
            raise ValidationError("cohort rule requires 'attribute' and 'operator'")
        return cls(attribute=str(data["attribute"]), operator=str(data["operator"]), value=data.get("value"))

    def to_dict(self) -> dict[str, Any]:
        return {"attribute": self.attribute, "operator": self.operator, "value": self.value}


@dataclasses.dataclass
class Cohort:
    """Named user segment: explicit members OR all rules matching."""
    name: str
    description: str = ""
    members: set[str] = dataclasses.field(default_factory=set)
    rules: list[CohortRule] = dataclasses.field(default_factory=list)
    created_at: datetime = dataclasses.field(default_factory=utc_now)
    updated_at: datetime = dataclasses.field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, name: str | None = None) -> "Cohort":
        data = _require_mapping(data, "cohort")
        cohort_name = data.get("name") or name
        if not cohort_name:
            raise ValidationError("cohort requires a 'name'")
        return cls(
            name=str(cohort_name),
            description=str(data.get("description") or ""),
            members={str(m) for m in data.get("members") or ()},
            rules=[CohortRule.from_dict(r) for r in data.get("rules") or ()],
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "members": sorted(self.members),
            "rules": [r.to_dict() for r in self.rules],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class EvaluationContext:
    """Who is asking: a stable ``user_id`` plus free-form attributes."""
    user_id: str
    attributes: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EvaluationContext":
        data = _require_mapping(data, "context")
        if not data.get("user_id"):
            raise ValidationError("context requires 'user_id'")
        return cls(user_id=str(data["user_id"]), attributes=dict(data.get("attributes") or {}))


@dataclasses.dataclass(frozen=True)
class EvaluationResult:
    flag_name: str
    user_id: str
    enabled: bool
    reason: str
    variant: str | None = None
    timestamp: datetime = dataclasses.field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "flag_name": self.flag_name,
            "user_id": self.user_id,
            "enabled": self.enabled,
            "reason": self.reason,
            "variant": self.variant,
            "timestamp": self.timestamp.isoformat(),
        }


__all__ = [
    "Cohort",
    "CohortRule",
    "Condition",
    "ErrorThreshold",
    "EvaluationContext",
    "EvaluationResult",
    "FeatureFlag",
    "FlagVariant",
    "Rollout",
]
