"""FIFO of task ids waiting for the worker."""

from __future__ import annotations

from collections import deque
from typing import Optional


class TaskQueue:
    def __init__(self):
        self._ids: deque[str] = deque()

    def enqueue(self, task_id: str) -> None:
        self._ids.append(task_id)

    def dequeue(self) -> Optional[str]:
        if not self._ids:
            return None
        return self._ids.popleft()

    def remove(self, task_id: str) -> bool:
        try:
            self._ids.remove(task_id)
        except ValueError:
            return False
        return True

    def ids(self) -> list[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids
