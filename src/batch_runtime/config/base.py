"""
Base types for configuration.
"""

from __future__ import annotations

from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["text", "json"]

# Bounds of the queue manager's "max concurrent jobs" setting.
MIN_CONCURRENT_JOBS = 1
MAX_CONCURRENT_JOBS = 10


__all__ = ["LogLevel", "LogFormat", "MIN_CONCURRENT_JOBS", "MAX_CONCURRENT_JOBS"]
