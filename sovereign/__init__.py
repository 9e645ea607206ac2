"""
Sovereign — In-Process Autonomy Core

This package turns free-text commands into audited, queued and executed work,
and keeps reporting on its own health while it does so.

Architecture layers (bottom to top):
    1. Kernel (session record + bounded log)
    2. Guardrails (advisory destructive-content policies)
    3. Memory (short-term memory + violation history)
    4. Intent (classification + operation resolution)
    5. Tasks (single-slot queue and worker)
    6. Goals (template-derived tasks)
    7. Commands (registry, executor, built-ins)
    8. Reflection (periodic health synthesis)
    9. Guardian + Router (allow / flag / block front door)
"""

__version__ = "0.1.0"
