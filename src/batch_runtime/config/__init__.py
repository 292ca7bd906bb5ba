"""
Configuration system for batch-runtime.

This package provides typed configuration classes with:
- Dataclass-based settings with validation
- Environment variable loading
- YAML/TOML file loading validated against a JSON schema
"""

from .base import MAX_CONCURRENT_JOBS, MIN_CONCURRENT_JOBS, LogFormat, LogLevel
from .logging import LoggingConfig
from .runtime import MonitoringConfig, QueueConfig
from .settings import Settings, configure, get_settings, load_env, reset_settings

__all__ = [
    # Types
    "LogLevel",
    "LogFormat",
    "MIN_CONCURRENT_JOBS",
    "MAX_CONCURRENT_JOBS",
    # Section configs
    "QueueConfig",
    "MonitoringConfig",
    "LoggingConfig",
    # Master config
    "Settings",
    # Global functions
    "get_settings",
    "configure",
    "reset_settings",
    "load_env",
]
