# sovereign/config.py
"""
Configuration for the Sovereign autonomy core.

All configuration flows through this module. Values are loaded from environment
variables (via .env file) and validated with Pydantic. Every bound the core
enforces (log size, history caps, worker cadence) lives here so a test or an
embedding application can tighten or loosen it without touching the code.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


# Resolve .env relative to the project root (one level above sovereign/ package),
# so the config works regardless of the user's current working directory.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class KernelConfig(BaseSettings):
    """Configuration for the kernel log and session bookkeeping."""

    max_log_entries: int = Field(200, alias="SOVEREIGN_KERNEL_MAX_LOG_ENTRIES")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "KernelConfig":
        self.max_log_entries = max(1, int(self.max_log_entries))
        return self


class GuardrailConfig(BaseSettings):
    """Configuration for the advisory guardrail policies."""

    max_violations: int = Field(20, alias="SOVEREIGN_GUARDRAIL_MAX_VIOLATIONS")
    max_task_description_length: int = Field(
        320, alias="SOVEREIGN_GUARDRAIL_MAX_TASK_DESCRIPTION"
    )
    oversized_context_chars: int = Field(120, alias="SOVEREIGN_GUARDRAIL_CONTEXT_CHARS")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "GuardrailConfig":
        self.max_violations = max(1, int(self.max_violations))
        self.max_task_description_length = max(1, int(self.max_task_description_length))
        self.oversized_context_chars = max(1, int(self.oversized_context_chars))
        return self


class MemoryConfig(BaseSettings):
    """Configuration for short-term memory."""

    stm_max_commands: int = Field(20, alias="SOVEREIGN_STM_MAX_COMMANDS")
    stm_max_completed_tasks: int = Field(10, alias="SOVEREIGN_STM_MAX_COMPLETED_TASKS")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "MemoryConfig":
        self.stm_max_commands = max(1, int(self.stm_max_commands))
        self.stm_max_completed_tasks = max(1, int(self.stm_max_completed_tasks))
        return self


class IntentConfig(BaseSettings):
    """Configuration for the intent classifier."""

    max_intents: int = Field(100, alias="SOVEREIGN_INTENT_MAX_HISTORY")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "IntentConfig":
        self.max_intents = max(1, int(self.max_intents))
        return self


class TaskConfig(BaseSettings):
    """Configuration for the task queue and its single worker."""

    worker_interval: float = Field(0.4, alias="SOVEREIGN_TASK_WORKER_INTERVAL")
    # Fixed simulated unit of work each task performs before finalizing.
    work_seconds: float = Field(0.5, alias="SOVEREIGN_TASK_WORK_SECONDS")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "TaskConfig":
        self.worker_interval = max(0.01, float(self.worker_interval))
        self.work_seconds = max(0.0, float(self.work_seconds))
        return self


class ReflectionConfig(BaseSettings):
    """Configuration for the periodic reflection engine."""

    interval: float = Field(300.0, alias="SOVEREIGN_REFLECTION_INTERVAL")
    max_reflections: int = Field(20, alias="SOVEREIGN_REFLECTION_MAX_HISTORY")
    log_window: int = Field(10, alias="SOVEREIGN_REFLECTION_LOG_WINDOW")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "ReflectionConfig":
        self.interval = max(1.0, float(self.interval))
        self.max_reflections = max(1, int(self.max_reflections))
        self.log_window = max(1, int(self.log_window))
        return self


class RouterConfig(BaseSettings):
    """Configuration for the command router and guardian audit trail."""

    max_session_entries: int = Field(100, alias="SOVEREIGN_ROUTER_MAX_SESSION_ENTRIES")
    max_audit_entries: int = Field(50, alias="SOVEREIGN_GUARDIAN_MAX_AUDIT_ENTRIES")

    model_config = {"env_file": _ENV_FILE, "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def normalize_limits(self) -> "RouterConfig":
        self.max_session_entries = max(1, int(self.max_session_entries))
        self.max_audit_entries = max(1, int(self.max_audit_entries))
        return self


class SovereignConfig:
    """
    Master configuration that composes all subsystem configs.

    Every component receives its config from here. No global state, no hidden
    settings: the composition root hands each subsystem the slice it needs.
    """

    def __init__(self):
        self.kernel = KernelConfig()
        self.guardrails = GuardrailConfig()
        self.memory = MemoryConfig()
        self.intent = IntentConfig()
        self.tasks = TaskConfig()
        self.reflection = ReflectionConfig()
        self.router = RouterConfig()

    def __repr__(self) -> str:
        return (
            f"SovereignConfig(log={self.kernel.max_log_entries}, "
            f"worker={self.tasks.worker_interval}s, "
            f"reflection={self.reflection.interval}s)"
        )
