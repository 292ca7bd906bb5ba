"""
Bounded notification buffer.
"""

from __future__ import annotations

from collections import deque

from .types import Notification


class NotificationBuffer:
    """Ring buffer keeping the most recent notifications, newest first.

    When full, appending evicts the oldest notification.
    """

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._items: deque[Notification] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def append(self, notification: Notification) -> None:
        self._items.appendleft(notification)

    def list(self) -> list[Notification]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["NotificationBuffer"]
