"""
Error taxonomy for batch-runtime.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Structured context for debugging
- Retryable vs non-retryable classification

Invalid transitions are not errors by default: the lifecycle controller
absorbs them as no-ops unless strict transitions are configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for the batch runtime."""

    # Job errors (1xxx)
    JOB_ERROR = "ERR_1000"
    JOB_NOT_FOUND = "ERR_1001"
    DUPLICATE_JOB = "ERR_1002"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "ERR_2000"
    INVALID_JOB_SPEC = "ERR_2001"
    INVALID_ACTION = "ERR_2002"
    INVALID_PRIORITY = "ERR_2003"
    INVALID_PROGRESS = "ERR_2004"

    # Lifecycle errors (3xxx)
    LIFECYCLE_ERROR = "ERR_3000"
    INVALID_TRANSITION = "ERR_3001"
    CONCURRENCY_LIMIT = "ERR_3002"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"
    INVALID_CONFIG = "ERR_6002"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    job_id: str | None = None
    action: str | None = None
    status: str | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "action": self.action,
            "status": self.status,
            "operation": self.operation,
            **self.extra,
        }


class BatchRuntimeError(Exception):
    """
    Base exception for all batch runtime errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        retryable: Whether the command can be reissued unchanged
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.job_id:
            parts.append(f"(job_id={self.context.job_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Job Errors
# =============================================================================


class JobError(BatchRuntimeError):
    """Base class for errors about individual jobs."""

    code = ErrorCode.JOB_ERROR


class JobNotFoundError(JobError):
    """A command referenced an unknown job id."""

    code = ErrorCode.JOB_NOT_FOUND

    def __init__(self, job_id: str, **kwargs):
        kwargs.setdefault("context", ErrorContext(job_id=job_id))
        super().__init__(f"Job not found: {job_id}", **kwargs)
        self.job_id = job_id


NotFoundError = JobNotFoundError


class DuplicateJobError(JobError):
    """A job with the same id already exists in the store."""

    code = ErrorCode.DUPLICATE_JOB

    def __init__(self, job_id: str, **kwargs):
        kwargs.setdefault("context", ErrorContext(job_id=job_id))
        super().__init__(f"Job already exists: {job_id}", **kwargs)
        self.job_id = job_id


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(BatchRuntimeError):
    """Base class for malformed command input."""

    code = ErrorCode.VALIDATION_ERROR


class InvalidJobSpecError(ValidationError):
    """The job specification passed to CreateJob is malformed."""

    code = ErrorCode.INVALID_JOB_SPEC

    def __init__(self, message: str, *, field_name: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_name = field_name


class InvalidActionError(ValidationError):
    """The action name is not part of the command vocabulary."""

    code = ErrorCode.INVALID_ACTION

    def __init__(self, action: str, **kwargs):
        kwargs.setdefault("context", ErrorContext(action=action))
        super().__init__(f"Unknown action: {action!r}", **kwargs)
        self.action = action


class InvalidPriorityError(ValidationError):
    """The priority name is not one of low/medium/high/critical."""

    code = ErrorCode.INVALID_PRIORITY

    def __init__(self, priority: str, **kwargs):
        super().__init__(f"Unknown priority: {priority!r}", **kwargs)
        self.priority = priority


class InvalidProgressError(ValidationError):
    """A progress report carried a negative delta."""

    code = ErrorCode.INVALID_PROGRESS


# =============================================================================
# Lifecycle Errors
# =============================================================================


class LifecycleError(BatchRuntimeError):
    """Base class for state machine errors (strict mode only)."""

    code = ErrorCode.LIFECYCLE_ERROR


class InvalidTransitionError(LifecycleError):
    """The action is not valid from the job's current status."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, job_id: str, action: str, status: str, **kwargs):
        kwargs.setdefault(
            "context",
            ErrorContext(job_id=job_id, action=action, status=status),
        )
        super().__init__(f"Cannot {action} a job in status {status!r}", **kwargs)
        self.job_id = job_id
        self.action = action
        self.status = status


class ConcurrencyLimitError(LifecycleError):
    """Starting or resuming the job would exceed the concurrency cap."""

    code = ErrorCode.CONCURRENCY_LIMIT
    retryable = True

    def __init__(
        self,
        job_id: str,
        max_concurrent_jobs: int,
        *,
        action: str = "start",
        **kwargs,
    ):
        kwargs.setdefault(
            "context",
            ErrorContext(
                job_id=job_id,
                action=action,
                extra={"max_concurrent_jobs": max_concurrent_jobs},
            ),
        )
        super().__init__(
            f"Concurrency limit reached ({max_concurrent_jobs} running jobs)",
            **kwargs,
        )
        self.job_id = job_id
        self.max_concurrent_jobs = max_concurrent_jobs
        self.action = action


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(BatchRuntimeError):
    """Base class for configuration errors."""

    code = ErrorCode.CONFIG_ERROR


class InvalidConfigError(ConfigError):
    """Configuration values are invalid."""

    code = ErrorCode.INVALID_CONFIG

    def __init__(self, message: str, *, config_key: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_key = config_key


__all__ = [
    "ErrorCode",
    "ErrorContext",
    "BatchRuntimeError",
    "JobError",
    "JobNotFoundError",
    "NotFoundError",
    "DuplicateJobError",
    "ValidationError",
    "InvalidJobSpecError",
    "InvalidActionError",
    "InvalidPriorityError",
    "InvalidProgressError",
    "LifecycleError",
    "InvalidTransitionError",
    "ConcurrencyLimitError",
    "ConfigError",
    "InvalidConfigError",
]
