"""
Short-Term Memory — the core's rolling record of what it just did.

Short-term memory holds three small, bounded views of recent activity:

1. COMMANDS: the last executed command ids and whether they succeeded
2. COMPLETED TASKS: the last tasks the worker finished successfully
3. LAST KERNEL ERROR: the most recent fault the core caught and survived

Both lists are newest-first and capped; the oldest item falls off when a new
one arrives. The reflection engine reads a snapshot of this on every tick, so
readers always get copies, never the live lists.
"""

from __future__ import annotations

import copy
import time
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import structlog
from pydantic_core import to_jsonable_python

from sovereign.config import MemoryConfig

if TYPE_CHECKING:
    from sovereign.tasks.engine import Task

logger = structlog.get_logger(__name__)


@dataclass
class CommandMemory:
    command: str
    status: str           # "ok", "error", "pending"
    at: float = field(default_factory=time.time)


@dataclass
class TaskMemory:
    id: str
    description: str
    status: str
    completed_at: float
    result: Any = None     # plain-value copy of the TaskResult


@dataclass
class KernelError:
    message: str
    at: float = field(default_factory=time.time)
    data: Any = None


@dataclass
class ShortTermMemorySnapshot:
    commands: list[CommandMemory] = field(default_factory=list)
    completed_tasks: list[TaskMemory] = field(default_factory=list)
    last_kernel_error: Optional[KernelError] = None


class ShortTermMemory:
    """Bounded recent-activity store. Newest entries first."""

    def __init__(self, config: Optional[MemoryConfig] = None):
        self._config = config or MemoryConfig()
        self._commands: deque[CommandMemory] = deque(maxlen=self._config.stm_max_commands)
        self._completed_tasks: deque[TaskMemory] = deque(
            maxlen=self._config.stm_max_completed_tasks
        )
        self._last_kernel_error: Optional[KernelError] = None

        logger.info(
            "stm.initialized",
            max_commands=self._config.stm_max_commands,
            max_completed_tasks=self._config.stm_max_completed_tasks,
        )

    def record_command(self, command: str, status: str) -> None:
        self._commands.appendleft(CommandMemory(command=command, status=status))

    def record_task_completion(self, task: Task) -> None:
        """Remember a finished task. Anything other than 'completed' is ignored."""
        if task.status != "completed":
            return
        completed_at = task.result.completed_at if task.result else time.time()
        self._completed_tasks.appendleft(
            TaskMemory(
                id=task.id,
                description=task.payload.description,
                status=task.status,
                completed_at=completed_at,
                result=to_jsonable_python(task.result, fallback=repr),
            )
        )

    def record_kernel_error(self, message: str, data: Any = None) -> None:
        self._last_kernel_error = KernelError(
            message=message,
            data=None if data is None else to_jsonable_python(data, fallback=repr),
        )
        logger.debug("stm.kernel_error_recorded", message=message)

    def snapshot(self) -> ShortTermMemorySnapshot:
        """Independent copy of the current memory."""
        return ShortTermMemorySnapshot(
            commands=copy.deepcopy(list(self._commands)),
            completed_tasks=copy.deepcopy(list(self._completed_tasks)),
            last_kernel_error=copy.deepcopy(self._last_kernel_error),
        )
