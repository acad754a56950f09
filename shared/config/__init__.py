"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.acs.session_ttl_minutes)
"""

from shared.config.settings import (
    AcsSettings,
    Environment,
    LogLevel,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "AcsSettings",
    "Settings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
]
