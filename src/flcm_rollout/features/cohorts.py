"""Features – CohortManager.

Segments users two ways: explicit membership (``add_user_to_cohort``) and
attribute rules evaluated against an :class:`EvaluationContext`.  Rules of
one cohort are ANDed; a cohort without rules only matches explicit members.

Membership lookups are cached per user and attribute set.  Every mutation
clears that cache and emits ``cohorts-changed`` on :attr:`events` with a
``{"cohort": ..., "change": ...}`` payload, so callers holding results
derived from membership can drop them before the next lookup.
"""
from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from flcm_rollout.config.files import read_yaml, write_yaml
from flcm_rollout.features.bucketing import is_in_rollout_percentage
from flcm_rollout.features.defaults import DEFAULT_COHORTS
from flcm_rollout.features.models import Cohort, CohortRule, EvaluationContext
from flcm_rollout.features.operators import matches
from flcm_rollout.kernel.errors import ValidationError
from flcm_rollout.kernel.time import Clock, SystemClock
from flcm_rollout.observability.events import EventEmitter
from flcm_rollout.observability.logging import get_logger

logger = get_logger(__name__)

_UPDATABLE_FIELDS = frozenset({"description", "members", "rules"})


def _fingerprint(context: EvaluationContext | None) -> str:
    if context is None:
        return ""
    return json.dumps(dict(context.attributes), sort_keys=True, default=str)


class CohortManager:
    def __init__(
        self,
        *,
        clock: Clock | None = None,
        events: EventEmitter | None = None,
        seed_defaults: bool = True,
    ) -> None:
        self._clock = clock or SystemClock()
        self.events = events or EventEmitter()
        self._cohorts: dict[str, Cohort] = {}
        self._cache: dict[tuple[str, str], list[str]] = {}
        if seed_defaults:
            for name, data in DEFAULT_COHORTS.items():
                self.create_cohort(self._build(name, data))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create_cohort(self, cohort: Cohort) -> None:
        """Register *cohort*, replacing any cohort with the same name."""
        self._cohorts[cohort.name] = cohort
        self._changed(cohort.name, "created")
        logger.info("cohort.created", cohort=cohort.name)

    def add_user_to_cohort(self, user_id: str, cohort_name: str) -> bool:
        cohort = self._cohorts.get(cohort_name)
        if cohort is None:
            logger.warning("cohort.not_found", cohort=cohort_name)
            return False
        cohort.members.add(user_id)
        cohort.updated_at = self._clock.now()
        self._changed(cohort_name, "member_added")
        logger.debug("cohort.member_added", cohort=cohort_name, user_id=user_id)
        return True

    def remove_user_from_cohort(self, user_id: str, cohort_name: str) -> bool:
        cohort = self._cohorts.get(cohort_name)
        if cohort is None or user_id not in cohort.members:
            return False
        cohort.members.discard(user_id)
        cohort.updated_at = self._clock.now()
        self._changed(cohort_name, "member_removed")
        logger.debug("cohort.member_removed", cohort=cohort_name, user_id=user_id)
        return True

    def update_cohort(self, name: str, /, **updates: Any) -> bool:
        """Replace ``description``, ``members`` and/or ``rules`` of *name*."""
        cohort = self._cohorts.get(name)
        if cohort is None:
            return False
        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update cohort fields: {sorted(unknown)}",
                errors=[{"field": f, "message": "not updatable"} for f in sorted(unknown)],
            )
        if "description" in updates:
            cohort.description = str(updates["description"] or "")
        if "members" in updates:
            cohort.members = {str(m) for m in updates["members"] or ()}
        if "rules" in updates:
            cohort.rules = [
                r if isinstance(r, CohortRule) else CohortRule.from_dict(r)
                for r in updates["rules"] or ()
            ]
        cohort.updated_at = self._clock.now()
        self._changed(name, "updated")
        logger.info("cohort.updated", cohort=name, fields=sorted(updates))
        return True

    def delete_cohort(self, name: str) -> bool:
        if self._cohorts.pop(name, None) is None:
            return False
        self._changed(name, "deleted")
        logger.info("cohort.deleted", cohort=name)
        return True

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("cohort.cache_cleared")

    def _changed(self, cohort: str | None, change: str) -> None:
        self._cache.clear()
        self.events.emit("cohorts-changed", {"cohort": cohort, "change": change})

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def get_user_cohorts(self, user_id: str, context: EvaluationContext | None = None) -> list[str]:
        """Names of every cohort *user_id* belongs to, in registration order.

        Without *context* only explicit membership is considered.
        """
        key = (user_id, _fingerprint(context))
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        names: list[str] = []
        for name, cohort in self._cohorts.items():
            if user_id in cohort.members:
                names.append(name)
            elif context is not None and self._rules_match(cohort.rules, context):
                names.append(name)

        self._cache[key] = names
        return list(names)

    def is_user_in_cohort(
        self, user_id: str, cohort_name: str, context: EvaluationContext | None = None
    ) -> bool:
        return cohort_name in self.get_user_cohorts(user_id, context)

    def is_in_rollout_group(self, user_id: str, percentage: float) -> bool:
        return is_in_rollout_percentage(user_id, percentage)

    @staticmethod
    def _rules_match(rules: Iterable[CohortRule], context: EvaluationContext) -> bool:
        rules = list(rules)
        if not rules:
            return False
        return all(
            matches(context.attributes, rule.attribute, rule.operator, rule.value) for rule in rules
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cohort(self, name: str) -> Cohort | None:
        return self._cohorts.get(name)

    def get_all_cohorts(self) -> dict[str, Cohort]:
        return dict(self._cohorts)

    def get_cohort_stats(self, name: str) -> dict[str, Any] | None:
        cohort = self._cohorts.get(name)
        if cohort is None:
            return None
        return {
            "name": cohort.name,
            "description": cohort.description,
            "member_count": len(cohort.members),
            "rule_count": len(cohort.rules),
            "created_at": cohort.created_at,
            "updated_at": cohort.updated_at,
        }

    def get_all_stats(self) -> dict[str, Any]:
        return {
            "total_cohorts": len(self._cohorts),
            "total_explicit_members": sum(len(c.members) for c in self._cohorts.values()),
            "cohorts": {name: self.get_cohort_stats(name) for name in self._cohorts},
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def import_cohorts(self, config: Mapping[str, Any]) -> int:
        """Load ``{"cohorts": {name: {...}}}``; all-or-nothing.

        Raises :class:`ValidationError` if any entry is malformed, in which
        case no cohort is changed.
        """
        raw = config.get("cohorts") or {}
        if not isinstance(raw, Mapping):
            raise ValidationError("'cohorts' must be a mapping")
        parsed = [self._build(name, data) for name, data in raw.items()]
        for cohort in parsed:
            self._cohorts[cohort.name] = cohort
        self._changed(None, "imported")
        logger.info("cohort.imported", count=len(parsed))
        return len(parsed)

    def export_cohorts(self) -> dict[str, Any]:
        return {"cohorts": {name: cohort.to_dict() for name, cohort in self._cohorts.items()}}

    def load_file(self, path: str | Path) -> int:
        return self.import_cohorts(read_yaml(path))

    def save_file(self, path: str | Path) -> None:
        write_yaml(path, self.export_cohorts())

    def _build(self, name: str, data: Mapping[str, Any]) -> Cohort:
        cohort = Cohort.from_dict(data, name=name)
        if "created_at" not in data:
            cohort = dataclasses.replace(cohort, created_at=self._clock.now(), updated_at=self._clock.now())
        return cohort


__all__ = ["CohortManager"]
