"""
JSON schemas for configuration validation.
"""

QUEUE_SCHEMA = {
    "type": "object",
    "properties": {
        "max_concurrent_jobs": {"type": "integer", "minimum": 1, "maximum": 10},
        "enforce_cap_on_start": {"type": "boolean"},
        "strict_transitions": {"type": "boolean"},
        "default_actor": {"type": "string", "minLength": 1},
    },
    "additionalProperties": False,
}

MONITORING_SCHEMA = {
    "type": "object",
    "properties": {
        "tick_interval_seconds": {"type": "number", "exclusiveMinimum": 0},
        "notification_capacity": {"type": "integer", "minimum": 1},
        "stall_timeout_minutes": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "min_elapsed_minutes": {"type": "number", "exclusiveMinimum": 0},
        "synthetic_progress_percent": {
            "type": ["number", "null"],
            "exclusiveMinimum": 0,
            "maximum": 100,
        },
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "batch-runtime configuration",
    "type": "object",
    "properties": {
        "queue": QUEUE_SCHEMA,
        "monitoring": MONITORING_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": False,
}
