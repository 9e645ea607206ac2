"""
Kernel — the process-wide session record and bounded log.

The kernel is the innermost layer of the autonomy core. It owns three things:
the session identity (generated once per process), the command counters, and
a bounded in-memory log that every other subsystem writes to. The reflection
engine reads this log back to judge system health, so it is the one place
where "what just happened" is kept in a form the core can reason about.

Entry data is frozen into plain values (dicts, lists, strings, numbers) when
it is appended. Later changes to the objects it described do not reach
the log. Values that cannot be serialized are kept as their repr.

Each log entry is also forwarded to structlog, so operators get the same
stream on stderr that the core keeps for itself.

This component cannot fail: appends are unconditional and trimming is local.
"""

from __future__ import annotations

import copy
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import structlog
from pydantic_core import to_jsonable_python

from sovereign.config import KernelConfig

logger = structlog.get_logger(__name__)

LogLevel = Literal["info", "warn", "error", "debug"]

# Kernel levels map onto structlog method names ("warn" is the kernel's spelling).
_STRUCTLOG_METHODS: dict[str, str] = {
    "info": "info",
    "warn": "warning",
    "error": "error",
    "debug": "debug",
}


@dataclass(frozen=True)
class LogEntry:
    """A single immutable line in the kernel log."""
    timestamp: float
    level: LogLevel
    source: str
    message: str
    data: Any = None


@dataclass
class LastCommand:
    id: str
    at: float


@dataclass
class KernelState:
    """Snapshot shape of the kernel. Only the Kernel mutates the live copy."""
    session_id: str
    started_at: float
    command_count: int = 0
    last_command: Optional[LastCommand] = None
    log: list[LogEntry] = field(default_factory=list)


class Kernel:
    """
    Owner of the session record and the bounded log.

    The log keeps at most ``max_log_entries`` entries; the oldest entry is
    evicted first. Readers get deep copies via get_state() and can never
    reach the live buffer.
    """

    def __init__(self, config: Optional[KernelConfig] = None):
        self._config = config or KernelConfig()
        self._session_id = uuid.uuid4().hex
        self._started_at = time.time()
        self._started_mono = time.monotonic()
        self._command_count = 0
        self._last_command: Optional[LastCommand] = None
        self._log: deque[LogEntry] = deque(maxlen=self._config.max_log_entries)

        logger.info(
            "kernel.initialized",
            session_id=self._session_id,
            max_log_entries=self._config.max_log_entries,
        )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    def append_log(self, level: LogLevel, source: str, message: str, data: Any = None) -> LogEntry:
        """Append an entry, evicting the oldest one once the cap is reached."""
        if data is not None:
            data = to_jsonable_python(data, fallback=repr)
        entry = LogEntry(
            timestamp=time.time(),
            level=level,
            source=source,
            message=message,
            data=data,
        )
        self._log.append(entry)

        emit = getattr(logger, _STRUCTLOG_METHODS.get(level, "info"))
        if data is None:
            emit(source, message=message)
        else:
            emit(source, message=message, data=data)
        return entry

    def log_info(self, source: str, message: str, data: Any = None) -> LogEntry:
        return self.append_log("info", source, message, data)

    def log_warn(self, source: str, message: str, data: Any = None) -> LogEntry:
        return self.append_log("warn", source, message, data)

    def log_error(self, source: str, message: str, data: Any = None) -> LogEntry:
        return self.append_log("error", source, message, data)

    def log_debug(self, source: str, message: str, data: Any = None) -> LogEntry:
        return self.append_log("debug", source, message, data)

    # -------------------------------------------------------------------------
    # Command bookkeeping
    # -------------------------------------------------------------------------

    def record_command_execution(self, command_id: str, status: str, duration_ms: float) -> None:
        """Count a finished command and log a one-line execution record."""
        self._command_count += 1
        self._last_command = LastCommand(id=command_id, at=time.time())
        level: LogLevel = "error" if status == "error" else "info"
        self.append_log(
            level,
            f"command.{command_id}",
            f"executed (status={status}, durationMs={round(duration_ms)})",
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def get_state(self) -> KernelState:
        """Return a deep, independent copy of the kernel state."""
        return KernelState(
            session_id=self._session_id,
            started_at=self._started_at,
            command_count=self._command_count,
            last_command=copy.deepcopy(self._last_command),
            log=copy.deepcopy(list(self._log)),
        )

    def recent_entries(self, limit: int) -> list[LogEntry]:
        """The last ``limit`` entries, oldest first."""
        if limit <= 0:
            return []
        return list(self._log)[-limit:]

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def command_count(self) -> int:
        return self._command_count

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_mono

    @property
    def log_size(self) -> int:
        return len(self._log)

    @property
    def capacity(self) -> int:
        return self._config.max_log_entries
