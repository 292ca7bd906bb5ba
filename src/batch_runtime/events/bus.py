"""
Event bus for job event distribution.

This module provides the EventBus abstraction and the in-memory
implementation UI collaborators subscribe to.
"""

from __future__ import annotations

import asyncio
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from .types import JobEvent, JobEventType


@dataclass
class EventSubscription:
    """Subscription to events from the event bus."""
    subscription_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    job_id: str | None = None
    event_types: set[JobEventType] | None = None  # None = all types

    def matches(self, event: JobEvent) -> bool:
        """Check if an event matches this subscription."""
        if self.job_id and event.job_id != self.job_id:
            return False
        if self.event_types and event.type not in self.event_types:
            return False
        return True


class EventBus(ABC):
    """Abstract event bus for job events.

    Implementations must provide:
    - publish: Send an event to all matching subscribers
    - subscribe: Create a subscription for events
    - unsubscribe: Remove a subscription
    """

    @abstractmethod
    async def publish(self, event: JobEvent) -> None:
        """Publish an event to all matching subscribers."""
        ...

    @abstractmethod
    def subscribe(
        self,
        job_id: str | None = None,
        event_types: set[JobEventType] | None = None,
    ) -> EventSubscription:
        """Create a subscription and return it."""
        ...

    @abstractmethod
    def events(
        self,
        subscription: EventSubscription,
    ) -> AsyncIterator[JobEvent]:
        """Iterate over events for a subscription."""
        ...

    @abstractmethod
    def unsubscribe(self, subscription: EventSubscription) -> None:
        """Remove a subscription."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the event bus and clean up resources."""
        ...

    async def emit(self, event: JobEvent) -> None:
        """Hook entry point; lets a bus be registered with a HookManager."""
        await self.publish(event)


class InMemoryEventBus(EventBus):
    """In-memory event bus implementation.

    Uses asyncio.Queue for each subscription. Suitable for single-process
    deployments and testing.

    Features:
    - Bounded buffers so a slow UI consumer cannot grow memory unbounded
    - Support for multiple subscribers per job
    """

    def __init__(
        self,
        max_queue_size: int = 1000,
        drop_policy: str = "oldest",  # "oldest" or "newest"
    ):
        if drop_policy not in ("oldest", "newest"):
            raise ValueError(f"Invalid drop policy: {drop_policy}")
        self._queues: dict[str, asyncio.Queue[JobEvent | None]] = {}
        self._subscriptions: dict[str, EventSubscription] = {}
        self._max_queue_size = max_queue_size
        self._drop_policy = drop_policy
        self._closed = False
        self._lock = asyncio.Lock()

    async def publish(self, event: JobEvent) -> None:
        """Publish an event to all matching subscribers."""
        if self._closed:
            return

        async with self._lock:
            for sub_id, subscription in list(self._subscriptions.items()):
                if not subscription.matches(event):
                    continue
                queue = self._queues.get(sub_id)
                if queue is None:
                    continue
                if queue.full():
                    if self._drop_policy == "newest":
                        continue
                    try:
                        queue.get_nowait()
                    except asyncio.QueueEmpty:
                        pass
                queue.put_nowait(event)

    def subscribe(
        self,
        job_id: str | None = None,
        event_types: set[JobEventType] | None = None,
    ) -> EventSubscription:
        """Create a subscription and return it."""
        subscription = EventSubscription(job_id=job_id, event_types=event_types)
        self._subscriptions[subscription.subscription_id] = subscription
        self._queues[subscription.subscription_id] = asyncio.Queue(
            maxsize=self._max_queue_size
        )
        return subscription

    async def events(
        self,
        subscription: EventSubscription,
    ) -> AsyncIterator[JobEvent]:
        """Iterate over events for a subscription.

        Yields events until the subscription is closed (receives None).
        """
        queue = self._queues.get(subscription.subscription_id)
        if not queue:
            return

        while True:
            event = await queue.get()
            if event is None:  # Sentinel for close
                break
            yield event

    def unsubscribe(self, subscription: EventSubscription) -> None:
        """Remove a subscription."""
        sub_id = subscription.subscription_id
        self._subscriptions.pop(sub_id, None)
        queue = self._queues.pop(sub_id, None)
        if queue is not None:
            # Send sentinel to unblock any waiting consumers
            try:
                queue.put_nowait(None)
            except asyncio.QueueFull:
                pass

    async def close(self) -> None:
        """Close the event bus and clean up resources."""
        self._closed = True
        async with self._lock:
            for queue in self._queues.values():
                try:
                    queue.put_nowait(None)  # Unblock consumers
                except asyncio.QueueFull:
                    pass
            self._queues.clear()
            self._subscriptions.clear()

    def pending(self, subscription: EventSubscription) -> list[JobEvent]:
        """Drain and return the events currently buffered for a subscription."""
        queue = self._queues.get(subscription.subscription_id)
        drained: list[JobEvent] = []
        while queue is not None and not queue.empty():
            event = queue.get_nowait()
            if event is not None:
                drained.append(event)
        return drained


__all__ = [
    "EventBus",
    "InMemoryEventBus",
    "EventSubscription",
]
