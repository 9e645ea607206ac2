"""Harness — the advisory policy layer."""
from sovereign.harness.guardrails import GuardrailEngine, GuardrailViolation, is_destructive

__all__ = ["GuardrailEngine", "GuardrailViolation", "is_destructive"]
