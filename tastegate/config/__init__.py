"""
Configuration Management

Centralized, environment-sourced configuration for:
- Approval gate policy (enforcement, strict mode, threshold, overrides)
- Scheduler polling cadence
- Conviction weighting
"""

from .settings import (
    Settings,
    ApprovalGateConfig,
    SchedulerConfig,
    ConvictionConfig,
    get_settings
)

__all__ = [
    "Settings",
    "ApprovalGateConfig",
    "SchedulerConfig",
    "ConvictionConfig",
    "get_settings"
]
