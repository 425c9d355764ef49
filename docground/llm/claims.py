"""Validate generated claim maps against the known source set."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Container, Iterable, List, Optional, Tuple

from docground.models.grounding import ClaimMapEntry

logger = logging.getLogger(__name__)


class ClaimVerdict(str, Enum):
    """Outcome of checking one claim map entry."""

    KNOWN_SOURCE = "known_source"
    NO_SOURCE_CONSTRAINT = "no_source_constraint"
    UNKNOWN_STRICT = "unknown_strict"
    UNKNOWN_PERMISSIVE = "unknown_permissive"


KEEP_VERDICTS = frozenset(
    {ClaimVerdict.KNOWN_SOURCE, ClaimVerdict.NO_SOURCE_CONSTRAINT, ClaimVerdict.UNKNOWN_PERMISSIVE}
)


class KnownSources:
    """Source ids from the cache, optionally backed by a read-only registry.

    Emptiness depends on the cache alone; the registry only adds members.
    """

    def __init__(self, source_ids: Iterable[str], registry: Optional[Container[str]] = None) -> None:
        self.source_ids = frozenset(source_ids)
        self.registry = registry

    def is_empty(self) -> bool:
        return not self.source_ids

    def __contains__(self, fact_id: object) -> bool:
        if fact_id in self.source_ids:
            return True
        return self.registry is not None and fact_id in self.registry


def classify_claim(
    entry: ClaimMapEntry, known: KnownSources, allow_training_knowledge: bool
) -> ClaimVerdict:
    if known.is_empty():
        return ClaimVerdict.NO_SOURCE_CONSTRAINT
    if entry.fact_id in known:
        return ClaimVerdict.KNOWN_SOURCE
    if allow_training_knowledge:
        return ClaimVerdict.UNKNOWN_PERMISSIVE
    return ClaimVerdict.UNKNOWN_STRICT


def validate_claims(
    entries: Iterable[ClaimMapEntry],
    known: KnownSources,
    allow_training_knowledge: bool,
) -> Tuple[List[ClaimMapEntry], List[str]]:
    """Split entries into the kept claim map and reclassified claim texts.

    Unknown source ids are moved to the unsourceable list in strict mode and
    kept unchanged in permissive mode. With no known sources at all, every
    entry is kept.
    """
    kept: List[ClaimMapEntry] = []
    unsourceable: List[str] = []
    for entry in entries:
        verdict = classify_claim(entry, known, allow_training_knowledge)
        if verdict in KEEP_VERDICTS:
            kept.append(entry)
        else:
            logger.warning("Claim cites unknown source %s; marking unsourceable", entry.fact_id)
            unsourceable.append(entry.claim)
    return kept, unsourceable
