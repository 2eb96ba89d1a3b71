"""Features – FeatureFlagProvider port."""
from __future__ import annotations

import abc

from flcm_rollout.features.models import EvaluationContext, EvaluationResult


class FeatureFlagProvider(abc.ABC):
    """Port: evaluate feature flags for a given user context."""

    @abc.abstractmethod
    async def evaluate(self, flag_name: str, context: EvaluationContext) -> EvaluationResult: ...

    async def is_enabled(self, flag_name: str, context: EvaluationContext) -> bool:
        return (await self.evaluate(flag_name, context)).enabled

    async def get_variant(self, flag_name: str, context: EvaluationContext) -> str | None:
        result = await self.evaluate(flag_name, context)
        return result.variant if result.enabled else None


__all__ = ["FeatureFlagProvider"]
