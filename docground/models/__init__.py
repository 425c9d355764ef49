"""Typed models shared across the application."""

from .document import ProtectedRange, Section, SplitDocument
from .facts import FactRefResult, FactReplacement
from .grounding import (
    ClaimMapEntry,
    GroundedWriteRequest,
    GroundedWriteResult,
    PageContext,
    SectionWriteConstraints,
)
from .sources import SourceCacheEntry

__all__ = [
    "ClaimMapEntry",
    "FactRefResult",
    "FactReplacement",
    "GroundedWriteRequest",
    "GroundedWriteResult",
    "PageContext",
    "ProtectedRange",
    "Section",
    "SectionWriteConstraints",
    "SourceCacheEntry",
    "SplitDocument",
]
