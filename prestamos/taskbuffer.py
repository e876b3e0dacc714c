"""Bounded, thread-safe FIFO of tasks shared by producers and consumers."""

from __future__ import annotations

import threading
from collections import deque

from .models import MAX_TASK_BUFFER, Task


class TaskBuffer:
    """A fixed-capacity queue whose push blocks when full and pop blocks when empty."""

    def __init__(self, capacity: int = MAX_TASK_BUFFER) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: deque[Task] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    def push(self, task: Task) -> None:
        """Append a task, waiting while the buffer is full."""
        with self._not_full:
            while len(self._items) >= self.capacity:
                self._not_full.wait()
            self._items.append(task)
            self._not_empty.notify()

    def pop(self) -> Task:
        """Remove and return the oldest task, waiting while the buffer is empty."""
        with self._not_empty:
            while not self._items:
                self._not_empty.wait()
            task = self._items.popleft()
            self._not_full.notify()
            return task

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)