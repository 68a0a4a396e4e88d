"""Core application configuration and utilities."""

from chronic_risk.core.config import Settings, settings
from chronic_risk.core.logging import configure_logging

__all__ = [
    # Config
    "Settings",
    "settings",
    # Logging
    "configure_logging",
]
