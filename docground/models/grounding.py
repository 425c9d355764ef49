"""Request/response models for grounded section rewriting."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import WireModel
from .sources import SourceCacheEntry


class PageContext(WireModel):
    """Minimal page framing for a section rewrite."""

    title: str
    type: str = "concept"
    entity_id: Optional[str] = None


class SectionWriteConstraints(WireModel):
    """Grounding flags passed to the generator."""

    allow_training_knowledge: bool = True
    require_claim_map: bool = False
    max_new_claims: Optional[int] = Field(default=None, ge=0)


class GroundedWriteRequest(WireModel):
    """Incoming section rewrite payload."""

    section_id: str
    section_content: str
    page_context: PageContext
    source_cache: List[SourceCacheEntry] = Field(default_factory=list)
    directions: Optional[str] = None
    constraints: SectionWriteConstraints = Field(default_factory=SectionWriteConstraints)


class ClaimMapEntry(WireModel):
    """Provenance edge from a generated claim to its justifying source."""

    claim: str = Field(..., min_length=1)
    fact_id: str = Field(..., min_length=1)
    source_url: str = ""
    quote: Optional[str] = None


class GroundedWriteResult(WireModel):
    """Rewritten section returned to the caller."""

    section_id: str
    content: str
    claim_map: List[ClaimMapEntry] = Field(default_factory=list)
    unsourceable_claims: List[str] = Field(default_factory=list)
