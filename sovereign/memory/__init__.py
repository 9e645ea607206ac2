"""Memory — the core's bounded recollection of recent activity."""
from sovereign.memory.stm import ShortTermMemory, ShortTermMemorySnapshot
from sovereign.memory.violations import ViolationHistory

__all__ = ["ShortTermMemory", "ShortTermMemorySnapshot", "ViolationHistory"]
