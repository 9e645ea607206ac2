"""Intent — classifying free text and resolving it against the operation catalog."""
from sovereign.intent.engine import IntentEngine, IntentSignal, detect_intent_kind, score_confidence
from sovereign.intent.resolver import CatalogNotLoadedError, IntentResolver

__all__ = [
    "IntentEngine",
    "IntentSignal",
    "detect_intent_kind",
    "score_confidence",
    "IntentResolver",
    "CatalogNotLoadedError",
]
