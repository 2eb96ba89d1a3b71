"""Config settings – env-based configuration."""
from flcm_rollout.config.settings.base import Settings
from flcm_rollout.config.settings.factory import SettingsFactory
from flcm_rollout.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "Settings", "SettingsFactory", "SettingsLoader"]
