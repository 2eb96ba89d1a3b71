"""Feature flags – evaluation engine, cohorts, metrics and remote config."""
from flcm_rollout.features.bucketing import bucket_for, is_in_rollout_percentage, select_variant
from flcm_rollout.features.cohorts import CohortManager
from flcm_rollout.features.errors import (
    EvaluationError,
    FeatureFlagError,
    FlagNotFoundError,
    RemoteConfigError,
)
from flcm_rollout.features.manager import FeatureFlagManager, create_flag_manager, get_default_manager
from flcm_rollout.features.metrics import MetricsCollector
from flcm_rollout.features.models import (
    Cohort,
    CohortRule,
    Condition,
    ErrorThreshold,
    EvaluationContext,
    EvaluationResult,
    FeatureFlag,
    FlagVariant,
    Rollout,
)
from flcm_rollout.features.provider import FeatureFlagProvider
from flcm_rollout.features.remote import RemoteConfigClient, validate_remote_config
from flcm_rollout.features.settings import FlagSettings

__all__ = [
    "Cohort",
    "CohortManager",
    "CohortRule",
    "Condition",
    "ErrorThreshold",
    "EvaluationContext",
    "EvaluationError",
    "EvaluationResult",
    "FeatureFlag",
    "FeatureFlagError",
    "FeatureFlagManager",
    "FeatureFlagProvider",
    "FlagNotFoundError",
    "FlagSettings",
    "FlagVariant",
    "MetricsCollector",
    "RemoteConfigClient",
    "RemoteConfigError",
    "Rollout",
    "bucket_for",
    "create_flag_manager",
    "get_default_manager",
    "is_in_rollout_percentage",
    "select_variant",
    "validate_remote_config",
]
