"""
flcm_rollout – feature flags, cohorts and dual-version routing for FLCM.

Import path convention::

    from flcm_rollout.features import FeatureFlagManager, EvaluationContext
    from flcm_rollout.features.cohorts import CohortManager
    from flcm_rollout.router import VersionRouter, VersionRequest
    from flcm_rollout.kernel.errors import ValidationError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
