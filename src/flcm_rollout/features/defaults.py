"""Features – built-in flag and cohort definitions."""
from __future__ import annotations

from typing import Any

DEFAULT_FLAGS: dict[str, dict[str, Any]] = {
    "v2_mentor_layer": {
        "description": "Enable 2.0 Mentor layer",
        "default": False,
        "rollout": {
            "percentage": 10,
            "cohorts": {"beta_testers": True, "internal_users": True},
        },
        "error_threshold": {"rate": 0.05, "window": 300, "min_samples": 10},
    },
    "v2_framework_library": {
        "description": "Enable new framework library",
        "default": False,
        "dependencies": ["v2_mentor_layer"],
        "rollout": {"percentage": 25},
        "variants": [
            {"name": "full_library", "weight": 50},
            {"name": "core_only", "weight": 50},
        ],
    },
    "v2_collaborative_mode": {
        "description": "Enable collaborative creation mode",
        "default": True,
        "rollout": {"percentage": 50},
    },
    "v2_document_migration": {
        "description": "Enable automatic document migration",
        "default": False,
        "rollout": {"percentage": 5, "cohorts": {"beta_testers": True}},
    },
    "v2_performance_monitoring": {
        "description": "Enable performance monitoring",
        "default": True,
        "rollout": {"percentage": 100},
    },
}

DEFAULT_COHORTS: dict[str, dict[str, Any]] = {
    "beta_testers": {
        "description": "Users opted into beta testing",
        "rules": [{"attribute": "beta_opt_in", "operator": "equals", "value": True}],
    },
    "internal_users": {
        "description": "Internal team members",
        "rules": [{"attribute": "email", "operator": "contains", "value": "@flcm.internal"}],
    },
    "power_users": {
        "description": "Highly active users",
        "rules": [
            {"attribute": "sessions_per_week", "operator": "greater_than", "value": 10},
            {"attribute": "frameworks_used", "operator": "greater_than", "value": 5},
        ],
    },
    "new_users": {
        "description": "Recently joined users",
        "rules": [{"attribute": "account_age_days", "operator": "less_than", "value": 7}],
    },
    "enterprise_users": {
        "description": "Enterprise plan subscribers",
        "rules": [{"attribute": "plan_type", "operator": "equals", "value": "enterprise"}],
    },
}

__all__ = ["DEFAULT_COHORTS", "DEFAULT_FLAGS"]
