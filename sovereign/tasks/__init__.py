"""Tasks — the single-slot queue, its state machine and its worker."""
from sovereign.tasks.engine import Task, TaskEngine, TaskMetrics, TaskResult
from sovereign.tasks.queue import TaskQueue
from sovereign.tasks.worker import TaskWorker

__all__ = ["Task", "TaskEngine", "TaskMetrics", "TaskResult", "TaskQueue", "TaskWorker"]
