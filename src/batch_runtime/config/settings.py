"""
Settings master configuration and global helpers.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
from dotenv import find_dotenv, load_dotenv

from ..config_schema import CONFIG_SCHEMA
from ..errors import InvalidConfigError
from .logging import LoggingConfig
from .runtime import MonitoringConfig, QueueConfig


@dataclass
class Settings:
    """
    Master configuration for the batch runtime.

    This aggregates all configuration sections into a single object
    that can be loaded from environment variables, files, or constructed
    programmatically.
    """

    queue: QueueConfig = field(default_factory=QueueConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, prefix: str = "BATCH_") -> Settings:
        """
        Load settings from environment variables.

        Example:
            BATCH_MAX_CONCURRENT_JOBS=5
            BATCH_STRICT_TRANSITIONS=true
            BATCH_TICK_INTERVAL_SECONDS=2.5
            BATCH_SYNTHETIC_PROGRESS_PERCENT=5
            BATCH_LOG_LEVEL=DEBUG
        """
        queue: dict[str, Any] = {}
        monitoring: dict[str, Any] = {}
        logging_: dict[str, Any] = {}

        # Queue settings
        if max_jobs := os.getenv(f"{prefix}MAX_CONCURRENT_JOBS"):
            queue["max_concurrent_jobs"] = _parse_int(max_jobs, "MAX_CONCURRENT_JOBS")
        if enforce := os.getenv(f"{prefix}ENFORCE_CAP_ON_START"):
            queue["enforce_cap_on_start"] = _parse_bool(enforce)
        if strict := os.getenv(f"{prefix}STRICT_TRANSITIONS"):
            queue["strict_transitions"] = _parse_bool(strict)
        if actor := os.getenv(f"{prefix}DEFAULT_ACTOR"):
            queue["default_actor"] = actor

        # Monitoring settings
        if interval := os.getenv(f"{prefix}TICK_INTERVAL_SECONDS"):
            monitoring["tick_interval_seconds"] = _parse_float(interval, "TICK_INTERVAL_SECONDS")
        if capacity := os.getenv(f"{prefix}NOTIFICATION_CAPACITY"):
            monitoring["notification_capacity"] = _parse_int(capacity, "NOTIFICATION_CAPACITY")
        if stall := os.getenv(f"{prefix}STALL_TIMEOUT_MINUTES"):
            monitoring["stall_timeout_minutes"] = _parse_float(stall, "STALL_TIMEOUT_MINUTES")
        if min_elapsed := os.getenv(f"{prefix}MIN_ELAPSED_MINUTES"):
            monitoring["min_elapsed_minutes"] = _parse_float(min_elapsed, "MIN_ELAPSED_MINUTES")
        if synthetic := os.getenv(f"{prefix}SYNTHETIC_PROGRESS_PERCENT"):
            monitoring["synthetic_progress_percent"] = _parse_float(
                synthetic, "SYNTHETIC_PROGRESS_PERCENT"
            )

        # Logging settings
        if level := os.getenv(f"{prefix}LOG_LEVEL"):
            logging_["level"] = level.upper()
        if log_format := os.getenv(f"{prefix}LOG_FORMAT"):
            logging_["format"] = log_format.lower()

        return cls._build(queue, monitoring, logging_)

    @classmethod
    def from_file(cls, path: str | Path) -> Settings:
        """
        Load settings from a YAML or TOML file.

        Args:
            path: Path to configuration file (.yaml, .yml, or .toml)

        Returns:
            Settings object with values from file
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(path) as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            raise InvalidConfigError(f"Unsupported config file format: {suffix}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """
        Create Settings from a dictionary.

        The dictionary is validated against the configuration schema
        before any section is built.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            key = ".".join(str(p) for p in e.absolute_path) or None
            raise InvalidConfigError(
                f"Configuration validation failed: {e.message}",
                config_key=key,
                cause=e,
            ) from e

        return cls._build(
            dict(data.get("queue", {})),
            dict(data.get("monitoring", {})),
            dict(data.get("logging", {})),
        )

    @classmethod
    def _build(
        cls,
        queue: dict[str, Any],
        monitoring: dict[str, Any],
        logging_: dict[str, Any],
    ) -> Settings:
        try:
            return cls(
                queue=QueueConfig(**queue),
                monitoring=MonitoringConfig(**monitoring),
                logging=LoggingConfig(**logging_),
            )
        except ValueError as e:
            raise InvalidConfigError(str(e), cause=e) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        return dataclasses.asdict(self)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(value: str, key: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise InvalidConfigError(f"{key} must be an integer, got {value!r}", config_key=key) from e


def _parse_float(value: str, key: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise InvalidConfigError(f"{key} must be a number, got {value!r}", config_key=key) from e


# =============================================================================
# Global Settings & Helpers
# =============================================================================

_global_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating from the environment if needed."""
    global _global_settings
    if _global_settings is None:
        _global_settings = Settings.from_env()
    return _global_settings


def configure(settings: Settings | None = None, **kwargs) -> Settings:
    """
    Configure global settings.

    Args:
        settings: Settings object to use globally
        **kwargs: Override specific sections (queue=..., monitoring=..., logging=...)

    Returns:
        The configured Settings object
    """
    global _global_settings

    if settings is not None:
        _global_settings = settings
    elif _global_settings is None:
        _global_settings = Settings.from_env()

    for key, value in kwargs.items():
        if hasattr(_global_settings, key):
            setattr(_global_settings, key, value)

    return _global_settings


def reset_settings() -> None:
    """Forget the global settings instance."""
    global _global_settings
    _global_settings = None


def load_env(path: str | None = None, *, override: bool = False) -> bool:
    """
    Load environment variables from a .env file.

    Args:
        path: Optional path to a .env file. If not provided, uses find_dotenv().
        override: Whether to override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    env_path = path or find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path, override=override)


__all__ = ["Settings", "get_settings", "configure", "reset_settings", "load_env"]
