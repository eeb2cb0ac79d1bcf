"""Bounded thread-safe queue with a configurable drop policy."""

from __future__ import annotations

import threading
from collections import deque
from enum import Enum
from typing import Deque, Generic, Optional, TypeVar

T = TypeVar("T")


class DropPolicy(Enum):
    OLDEST_DROP = "oldest"  # when full, discard the oldest item and keep the new one
    NEWEST_DROP = "newest"  # when full, reject the new item


class QueueClosed(Exception):
    """Raised by a blocking pop on a closed, empty queue."""


class ThreadQueue(Generic[T]):
    """A bounded FIFO shared between threads."""

    def __init__(self, capacity: int = 1, policy: DropPolicy = DropPolicy.OLDEST_DROP):
        self._cond = threading.Condition()
        self._items: Deque[T] = deque()
        self._capacity = max(1, capacity)
        self._policy = policy
        self._closed = False

    def set_capacity(self, capacity: int) -> None:
        """Change the capacity (minimum 1), dropping the oldest overflow."""
        with self._cond:
            self._capacity = max(1, capacity)
            while len(self._items) > self._capacity:
                self._items.popleft()

    def set_drop_policy(self, policy: DropPolicy) -> None:
        with self._cond:
            self._policy = policy

    def push(self, item: T) -> bool:
        """Add an item; return False if it was rejected (closed or dropped)."""
        with self._cond:
            if self._closed:
                return False
            if len(self._items) >= self._capacity:
                if self._policy is DropPolicy.NEWEST_DROP:
                    return False
                self._items.popleft()
            self._items.append(item)
            self._cond.notify()
            return True

    def pop_blocking(self) -> T:
        """Wait for an item; raise QueueClosed once closed and drained."""
        with self._cond:
            self._cond.wait_for(lambda: self._closed or self._items)
            if not self._items:
                raise QueueClosed("queue is closed")
            return self._items.popleft()

    def try_pop(self) -> Optional[T]:
        """Return the oldest item, or None if the queue is empty."""
        with self._cond:
            return self._items.popleft() if self._items else None

    def pop_latest(self) -> Optional[T]:
        """Return the newest item and discard the rest, or None if empty."""
        with self._cond:
            if not self._items:
                return None
            latest = self._items[-1]
            self._items.clear()
            return latest

    def close(self) -> None:
        """Reject further pushes and wake all waiters."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)