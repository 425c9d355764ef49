"""FastAPI application entry point."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import Field

from docground.config import settings
from docground.llm.section_writer import GroundedSectionWriter
from docground.markup.fact_refs import apply_fact_refs, repair_fact_tags
from docground.markup.footnotes import renumber_footnotes
from docground.markup.sections import split_into_sections
from docground.models.base import WireModel
from docground.models.document import SplitDocument
from docground.models.facts import FactRefResult, FactReplacement
from docground.models.grounding import (
    GroundedWriteRequest,
    GroundedWriteResult,
    PageContext,
    SectionWriteConstraints,
)
from docground.models.sources import SourceCacheEntry
from docground.pipeline import DocumentImproveResult, improve_document

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="docground",
    description="Document annotation and grounding engine",
    version="0.1.0",
)


class DocumentPayload(WireModel):
    content: str


class FactRefPayload(WireModel):
    content: str
    proposals: List[FactReplacement] = Field(default_factory=list)


class ImprovePayload(WireModel):
    content: str
    page_context: PageContext
    source_cache: List[SourceCacheEntry] = Field(default_factory=list)
    section_ids: Optional[List[str]] = None
    directions: Optional[str] = None
    constraints: SectionWriteConstraints = Field(default_factory=SectionWriteConstraints)
    fact_proposals: List[FactReplacement] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_section_writer() -> GroundedSectionWriter:
    return GroundedSectionWriter()


@app.get("/health")
def health() -> dict[str, str]:
    """Simple readiness probe."""
    return {"status": "ok"}


@app.post("/sections/split", response_model=SplitDocument)
def split_sections(payload: DocumentPayload) -> SplitDocument:
    return split_into_sections(payload.content)


@app.post("/footnotes/renumber", response_model=DocumentPayload)
def renumber(payload: DocumentPayload) -> DocumentPayload:
    return DocumentPayload(content=renumber_footnotes(payload.content))


@app.post("/facts/apply", response_model=FactRefResult)
def apply_facts(payload: FactRefPayload) -> FactRefResult:
    result = apply_fact_refs(payload.content, payload.proposals)
    return result.model_copy(update={"content": repair_fact_tags(result.content)})


@app.post("/sections/rewrite", response_model=GroundedWriteResult)
def rewrite_section(
    payload: GroundedWriteRequest,
    writer: GroundedSectionWriter = Depends(get_section_writer),
) -> GroundedWriteResult:
    """Rewrite one section against the supplied source cache."""
    try:
        return writer.rewrite(payload)
    except Exception as exc:
        logger.error("Section generation failed for %s: %s", payload.section_id, exc)
        raise HTTPException(status_code=502, detail="Section generation failed.") from exc


@app.post("/documents/improve", response_model=DocumentImproveResult)
def improve(
    payload: ImprovePayload,
    writer: GroundedSectionWriter = Depends(get_section_writer),
) -> DocumentImproveResult:
    """Run the full single-page pipeline."""
    try:
        return improve_document(
            payload.content,
            payload.page_context,
            payload.source_cache,
            writer,
            section_ids=payload.section_ids,
            directions=payload.directions,
            constraints=payload.constraints,
            fact_proposals=payload.fact_proposals,
        )
    except Exception as exc:
        logger.error("Document improvement failed for %r: %s", payload.page_context.title, exc)
        raise HTTPException(status_code=502, detail="Section generation failed.") from exc
