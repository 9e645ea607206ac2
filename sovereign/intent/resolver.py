"""
Intent Resolver — map raw command text onto the operation catalog.

Resolution is rule-first: an explicit ``/operation`` or a leading token that
names an operation wins outright, and anything mentioning "ping" is routed to
the ping operation. Only when no rule applies are operations ranked by naive
token overlap between their name/id and the command text.

Resolving before a catalog has been loaded is a startup-ordering bug, not a
runtime condition, so it raises instead of returning a degraded intent.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

import structlog

from sovereign.models import CommandIntent, Operation

logger = structlog.get_logger(__name__)

_TOKEN_SPLIT_RE = re.compile(r"[\s._\-/]+")


class CatalogNotLoadedError(RuntimeError):
    """resolve() was called before load_catalog()."""


class IntentResolver:
    """Resolves command text into a CommandIntent."""

    def __init__(self, operations: Optional[Iterable[Operation]] = None):
        self._operations: Optional[list[Operation]] = None
        if operations is not None:
            self.load_catalog(operations)

    def load_catalog(self, operations: Iterable[Operation]) -> None:
        self._operations = list(operations)
        logger.info("intent_resolver.catalog_loaded", operations=len(self._operations))

    @property
    def is_loaded(self) -> bool:
        return self._operations is not None

    def _find(self, operation_id: str) -> Optional[Operation]:
        for op in self._operations or []:
            if op.id == operation_id:
                return op
        return None

    @staticmethod
    def _score(text: str, op: Operation) -> tuple[float, int]:
        tokens = {t for t in _TOKEN_SPLIT_RE.split(f"{op.id} {op.name}".lower()) if len(t) > 2}
        hits = sum(1 for token in tokens if token in text)
        if hits == 0:
            return 0.4, 0
        return min(1.0, 0.6 + hits * 0.1), hits

    def resolve(self, command: str) -> CommandIntent:
        if self._operations is None:
            raise CatalogNotLoadedError("IntentResolver has no operation catalog loaded.")

        trimmed = command.strip()
        first, _, rest = trimmed.partition(" ")
        candidate = first[1:] if first.startswith("/") else first

        match = self._find(candidate) if candidate else None
        if match is not None:
            return CommandIntent(
                operation_id=match.id,
                summary=match.description or match.name,
                confidence=0.9,
                source="rule",
                arguments={"raw_args": rest.strip()} if rest.strip() else {},
            )

        lowered = trimmed.lower()
        if "ping" in lowered and self._find("ping") is not None:
            return CommandIntent(
                operation_id="ping",
                summary="Diagnostics ping",
                confidence=0.7,
                source="rule",
            )

        ranked = sorted(
            ((self._score(lowered, op), op) for op in self._operations),
            key=lambda pair: pair[0][1],
            reverse=True,
        )
        if ranked and ranked[0][0][1] > 0:
            (confidence, _hits), best = ranked[0]
            return CommandIntent(
                operation_id=best.id,
                summary=f"Suggested operation {best.name}",
                confidence=confidence,
                source="heuristic",
            )

        logger.debug("intent_resolver.no_match", command=trimmed[:80])
        return CommandIntent(
            operation_id=None,
            summary="No matching operation",
            confidence=0.4,
            source="heuristic",
        )
