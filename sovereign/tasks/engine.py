"""
Task Engine — the queue, the state machine, and the one-at-a-time runner.

A task is a unit of schedulable work described in plain text. It moves
through a small state machine:

    queued ──► running ──► completed | failed | cancelled
       └──────────────────► cancelled

Nothing ever leaves a terminal state. At most one task is running at any
instant: a single "current task" marker is checked and set, synchronously,
before anything is dequeued. That marker is the core scheduling invariant.

Cancellation of a running task is cooperative. cancel_task() marks the task
cancelled; the in-flight unit of work still finishes, and finalization then
honours the mark instead of recording a completion.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional

import structlog

from sovereign.config import TaskConfig
from sovereign.events import EventBus, TaskFinalizedEvent
from sovereign.tasks.queue import TaskQueue

if TYPE_CHECKING:
    from sovereign.harness.guardrails import GuardrailEngine
    from sovereign.intent.engine import IntentEngine
    from sovereign.kernel import Kernel
    from sovereign.memory.stm import ShortTermMemory

logger = structlog.get_logger(__name__)

TaskStatus = Literal["queued", "running", "completed", "cancelled", "failed"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "cancelled", "failed"})
ACTIVE_STATUSES: frozenset[str] = frozenset({"queued", "running"})


def _stamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class TaskPayload:
    description: str
    meta: Any = None


@dataclass
class TaskResult:
    success: bool
    completed_at: float
    data: Any = None
    error: Optional[str] = None


@dataclass
class Task:
    id: str
    payload: TaskPayload
    status: TaskStatus = "queued"
    created_at: float = field(default_factory=time.time)
    logs: list[str] = field(default_factory=list)
    result: Optional[TaskResult] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class TaskMetrics:
    queued_count: int
    running: Optional[Task]
    last_completed: Optional[Task]


# The unit of work a task performs. Returns the data stored on the result.
TaskRunner = Callable[[Task], Awaitable[Any]]


class TaskEngine:
    """Owns every task, the FIFO queue, and the current-task marker."""

    def __init__(
        self,
        kernel: Kernel,
        intents: IntentEngine,
        guardrails: GuardrailEngine,
        stm: ShortTermMemory,
        config: Optional[TaskConfig] = None,
        runner: Optional[TaskRunner] = None,
        events: Optional[EventBus] = None,
    ):
        self._kernel = kernel
        self._intents = intents
        self._guardrails = guardrails
        self._stm = stm
        self._config = config or TaskConfig()
        self._runner = runner or self._simulated_work
        self._events = events
        self._tasks: dict[str, Task] = {}
        self._queue = TaskQueue()
        self._current_task_id: Optional[str] = None

        logger.info("task_engine.initialized", work_seconds=self._config.work_seconds)

    async def _simulated_work(self, task: Task) -> Any:
        """Fixed delay standing in for real work; echoes the payload back."""
        await asyncio.sleep(self._config.work_seconds)
        return {"echo": {"description": task.payload.description, "meta": task.payload.meta}}

    @staticmethod
    def _transition(task: Task, status: TaskStatus, message: str) -> None:
        task.status = status
        task.logs.append(f"{_stamp()}: {message}")

    def _finalize(self, task: Task) -> None:
        if self._events is not None:
            self._events.emit(TaskFinalizedEvent(task_id=task.id, status=task.status))

    # -------------------------------------------------------------------------
    # Creation & control
    # -------------------------------------------------------------------------

    def create_task(self, description: str, meta: Any = None) -> Task:
        """Queue a task. Intent analysis and guardrails run before returning."""
        task = Task(
            id=f"task-{uuid.uuid4().hex[:12]}",
            payload=TaskPayload(description=description, meta=meta),
        )
        task.logs.append(f"{_stamp()}: Task created")

        self._tasks[task.id] = task
        self._queue.enqueue(task.id)
        self._intents.analyze_task(task)
        self._guardrails.handle_violation(self._guardrails.check_task(task))
        self._kernel.log_info(
            "tasks.engine",
            f"Queued task {task.id}",
            {"description": description, "meta": meta},
        )
        return task

    def cancel_task(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None:
            return False

        if task.status == "queued":
            self._queue.remove(task_id)
            self._transition(task, "cancelled", "Task cancelled before execution")
            self._kernel.log_info("tasks.engine", f"Cancelled queued task {task_id}")
            self._finalize(task)
            return True

        if task.status == "running":
            self._transition(task, "cancelled", "Task marked as cancelled")
            self._kernel.log_info("tasks.engine", f"Marked running task {task_id} as cancelled")
            return True

        return False

    # -------------------------------------------------------------------------
    # Worker step
    # -------------------------------------------------------------------------

    async def process_next(self) -> Optional[Task]:
        """
        Run the next queued task to completion, if the slot is free.

        Returns the task that was processed, or None when the worker was busy
        or the queue was empty.
        """
        if self._current_task_id is not None:
            return None
        next_id = self._queue.dequeue()
        if next_id is None:
            return None
        task = self._tasks.get(next_id)
        if task is None:
            return None

        self._current_task_id = next_id
        self._transition(task, "running", "Task started")
        self._kernel.log_info("tasks.engine", f"Running task {task.id}", {"payload": task.payload})

        try:
            data = await self._runner(task)
            if task.status == "cancelled":
                task.logs.append(f"{_stamp()}: Task cancelled during execution")
            else:
                task.result = TaskResult(success=True, data=data, completed_at=time.time())
                self._transition(task, "completed", "Task completed")
                self._stm.record_task_completion(task)
        except asyncio.CancelledError:
            if not task.is_terminal:
                self._transition(task, "cancelled", "Task interrupted by worker shutdown")
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            if not task.is_terminal:
                task.result = TaskResult(success=False, error=message, completed_at=time.time())
                self._transition(task, "failed", "Task failed")
            self._kernel.log_error("tasks.engine", message, {"task_id": task.id})
            self._stm.record_kernel_error(message, {"task_id": task.id})
            logger.error("task_engine.task_failed", task_id=task.id, error=message, exc_info=True)
        finally:
            self._current_task_id = None
            self._finalize(task)

        return task

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_tasks(self) -> list[Task]:
        """Every task, newest created first."""
        return list(reversed(self._tasks.values()))

    def inspect_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def task_metrics(self) -> TaskMetrics:
        running = self._tasks.get(self._current_task_id) if self._current_task_id else None
        last_completed = next(
            (task for task in self.list_tasks() if task.status == "completed"), None
        )
        return TaskMetrics(
            queued_count=len(self._queue),
            running=running,
            last_completed=last_completed,
        )

    def queued_ids(self) -> list[str]:
        return self._queue.ids()

    @property
    def is_busy(self) -> bool:
        return self._current_task_id is not None

    @property
    def current_task_id(self) -> Optional[str]:
        return self._current_task_id
