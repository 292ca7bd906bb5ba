"""
Lightweight hooks for fanning job events out to in-process consumers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

from .types import JobEvent


class Hook(Protocol):
    """Protocol for event hooks."""

    def emit(self, event: JobEvent) -> Any:
        """Receive an event. May return an awaitable."""
        ...


class HookManager:
    """Manages multiple hooks and broadcasts events to all of them, in order."""

    def __init__(self, hooks: Iterable[Hook] | None = None) -> None:
        self._hooks = list(hooks or [])

    def add(self, hook: Hook) -> None:
        """Add a hook to the manager."""
        self._hooks.append(hook)

    def remove(self, hook: Hook) -> None:
        """Remove a hook if registered."""
        if hook in self._hooks:
            self._hooks.remove(hook)

    async def emit(self, event: JobEvent) -> None:
        """Emit an event to all registered hooks."""
        for hook in self._hooks:
            result = hook.emit(event)
            if asyncio.iscoroutine(result):
                await result


class RecordingHook:
    """Keeps every event it sees; for tests and local inspection."""

    def __init__(self) -> None:
        self.events: list[JobEvent] = []

    def emit(self, event: JobEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [event.type.value for event in self.events]


__all__ = [
    "Hook",
    "HookManager",
    "RecordingHook",
]
