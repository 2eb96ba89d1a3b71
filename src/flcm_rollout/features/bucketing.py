"""Features – deterministic user bucketing.

A user's bucket is the first 8 hex digits of ``md5(key)`` read as an
unsigned 32-bit integer.  Cohort rollouts and flag rollouts share this
function, so a user sits in the same bucket everywhere.
"""
from __future__ import annotations

import hashlib
from typing import Sequence

from flcm_rollout.features.models import FlagVariant


def _hash32(key: str) -> int:
    digest = hashlib.md5(key.encode("utf-8")).hexdigest()  # noqa: S324
    return int(digest[:8], 16)


def bucket_for(key: str, modulo: int = 100) -> int:
    return _hash32(key) % modulo


def is_in_rollout_percentage(user_id: str, percentage: float) -> bool:
    """True when *user_id* falls in the first *percentage* of 100 buckets.

    Monotonic: a user inside ``p`` is inside every ``p' >= p``.
    """
    return bucket_for(user_id, 100) < percentage


def select_variant(variants: Sequence[FlagVariant], user_id: str) -> str | None:
    """Pick a variant proportionally to its weight, stable per user."""
    if not variants:
        return None
    total = sum(v.weight for v in variants)
    if total <= 0:
        return None
    point = _hash32(f"{user_id}_variant") % total
    cumulative = 0.0
    for variant in variants:
        cumulative += variant.weight
        if point < cumulative:
            return variant.name
    return variants[0].name


__all__ = ["bucket_for", "is_in_rollout_percentage", "select_variant"]
