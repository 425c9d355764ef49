"""Fact reference proposals and annotation results."""

from __future__ import annotations

from typing import List

from pydantic import Field

from .base import WireModel


class FactReplacement(WireModel):
    """A proposal to bind visible text to a canonical (entity, fact) pair."""

    search_text: str
    entity_id: str
    fact_id: str
    display_text: str = ""


class FactRefResult(WireModel):
    """Outcome of applying fact reference proposals to a document."""

    content: str
    applied: int = 0
    applied_replacements: List[FactReplacement] = Field(default_factory=list)
