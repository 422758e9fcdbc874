"""Configuration loading."""

from .settings import BudgetSettings, EstimationConfig, get_default_config, load_settings

__all__ = ["BudgetSettings", "EstimationConfig", "get_default_config", "load_settings"]
