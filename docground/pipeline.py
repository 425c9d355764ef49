"""Compose the document operations for one page in pipeline order.

split -> filter sources per section -> grounded rewrite (claims validated)
-> reassemble -> renumber footnotes -> annotate facts -> repair tags.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from pydantic import Field

from docground.llm.section_writer import GroundedSectionWriter
from docground.markup.fact_refs import apply_fact_refs, repair_fact_tags
from docground.markup.footnotes import renumber_footnotes
from docground.markup.sections import reassemble_sections, split_into_sections
from docground.models.base import WireModel
from docground.models.facts import FactReplacement
from docground.models.grounding import (
    GroundedWriteRequest,
    GroundedWriteResult,
    PageContext,
    SectionWriteConstraints,
)
from docground.models.sources import SourceCacheEntry

logger = logging.getLogger(__name__)


class DocumentImproveResult(WireModel):
    content: str
    section_results: List[GroundedWriteResult] = Field(default_factory=list)
    applied_fact_refs: List[FactReplacement] = Field(default_factory=list)


def improve_document(
    content: str,
    page_context: PageContext,
    source_cache: List[SourceCacheEntry],
    writer: GroundedSectionWriter,
    section_ids: Optional[Iterable[str]] = None,
    directions: Optional[str] = None,
    constraints: Optional[SectionWriteConstraints] = None,
    fact_proposals: Iterable[FactReplacement] = (),
) -> DocumentImproveResult:
    """Rewrite the selected sections of one page and normalize the result.

    ``section_ids`` of None rewrites every section. Generation failures
    propagate; nothing is partially applied in that case.
    """
    split = split_into_sections(content)
    wanted = None if section_ids is None else set(section_ids)
    constraints = constraints or SectionWriteConstraints()

    results: List[GroundedWriteResult] = []
    sections = []
    for section in split.sections:
        if wanted is None or section.id in wanted:
            request = GroundedWriteRequest(
                section_id=section.id,
                section_content=section.content,
                page_context=page_context,
                source_cache=source_cache,
                directions=directions,
                constraints=constraints,
            )
            result = writer.rewrite(request)
            results.append(result)
            section = section.model_copy(update={"content": result.content})
        sections.append(section)
    split = split.model_copy(update={"sections": sections})

    improved = renumber_footnotes(reassemble_sections(split))
    annotated = apply_fact_refs(improved, fact_proposals)
    final = repair_fact_tags(annotated.content)
    logger.info(
        "Improved %s sections of %r; %s fact refs inserted",
        len(results),
        page_context.title,
        annotated.applied,
    )
    return DocumentImproveResult(
        content=final,
        section_results=results,
        applied_fact_refs=annotated.applied_replacements,
    )
