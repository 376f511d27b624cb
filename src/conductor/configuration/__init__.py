"""Configuration loading utilities for the conductor."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    BudgetConfig,
    ConductorConfig,
    ConfigurationManager,
    EstimateConfig,
    GhostConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "BudgetConfig",
    "ConductorConfig",
    "ConfigurationManager",
    "EstimateConfig",
    "GhostConfig",
]
