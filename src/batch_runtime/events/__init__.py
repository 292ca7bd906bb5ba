"""
Event system for batch runtime.

This module provides the job event model, the event bus UI collaborators
subscribe to, and the hook manager used for in-process fan-out.
"""

from .types import (
    JobEvent,
    JobEventType,
)
from .bus import (
    EventBus,
    InMemoryEventBus,
    EventSubscription,
)
from .hooks import (
    Hook,
    HookManager,
    RecordingHook,
)

__all__ = [
    # Event types
    "JobEvent",
    "JobEventType",
    # Bus
    "EventBus",
    "InMemoryEventBus",
    "EventSubscription",
    # Hooks
    "Hook",
    "HookManager",
    "RecordingHook",
]
