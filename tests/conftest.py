"""
Shared fixtures for the Sovereign test suite.

Provides a fresh, fully wired autonomy core with a zero-length task unit of
work, plus the individual low-level components for tests that exercise one
subsystem in isolation.
"""

from __future__ import annotations

import pytest

from sovereign.config import SovereignConfig, TaskConfig
from sovereign.core import AutonomyCore
from sovereign.harness.guardrails import GuardrailEngine
from sovereign.intent.engine import IntentEngine
from sovereign.kernel import Kernel
from sovereign.memory.stm import ShortTermMemory
from sovereign.memory.violations import ViolationHistory
from sovereign.tasks.engine import TaskEngine


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@pytest.fixture()
def config() -> SovereignConfig:
    """Default config, except that tasks finish instantly."""
    cfg = SovereignConfig()
    cfg.tasks = TaskConfig(work_seconds=0.0, worker_interval=0.01)
    return cfg


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture()
def kernel() -> Kernel:
    return Kernel()


@pytest.fixture()
def violations() -> ViolationHistory:
    return ViolationHistory()


@pytest.fixture()
def guardrails(kernel: Kernel, violations: ViolationHistory) -> GuardrailEngine:
    return GuardrailEngine(kernel, violations)


@pytest.fixture()
def stm() -> ShortTermMemory:
    return ShortTermMemory()


@pytest.fixture()
def intents(kernel: Kernel, guardrails: GuardrailEngine) -> IntentEngine:
    return IntentEngine(kernel, guardrails)


@pytest.fixture()
def task_engine(
    kernel: Kernel,
    intents: IntentEngine,
    guardrails: GuardrailEngine,
    stm: ShortTermMemory,
) -> TaskEngine:
    return TaskEngine(kernel, intents, guardrails, stm, TaskConfig(work_seconds=0.0))


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------

@pytest.fixture()
def core(config: SovereignConfig) -> AutonomyCore:
    return AutonomyCore(config)
