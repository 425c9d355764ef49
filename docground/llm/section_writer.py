"""Rewrite one section against a pre-built source cache and validate its claim map.

The writer makes exactly one generation call per request. Failures of that
call propagate to the caller unchanged; malformed output never raises and
falls back to the raw response text with empty claim data.
"""

from __future__ import annotations

import logging
from typing import Any, Container, List, Optional

from pydantic import ValidationError

from docground.config import settings
from docground.llm.claims import KnownSources, validate_claims
from docground.llm.json_parsing import extract_json_object
from docground.llm.openai_client import Generate, OpenAIGenerator
from docground.llm.prompts import SECTION_WRITER_SYSTEM_PROMPT, build_section_writer_prompt
from docground.models.document import Section
from docground.models.grounding import ClaimMapEntry, GroundedWriteRequest, GroundedWriteResult
from docground.retrieval.relevance import filter_sources_for_section

logger = logging.getLogger(__name__)


def _parse_claim_entries(raw_entries: Any) -> List[ClaimMapEntry]:
    if not isinstance(raw_entries, list):
        return []
    entries: List[ClaimMapEntry] = []
    for item in raw_entries:
        try:
            entries.append(ClaimMapEntry.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping malformed claim map entry %r: %s", item, exc)
    return entries


def _parse_string_list(raw_items: Any) -> List[str]:
    if not isinstance(raw_items, list):
        return []
    return [item for item in raw_items if isinstance(item, str) and item.strip()]


def parse_grounded_result(
    raw: str,
    request: GroundedWriteRequest,
    registry: Optional[Container[str]] = None,
) -> GroundedWriteResult:
    """Turn generator output into a validated result; never raises."""
    data = extract_json_object(raw)
    content = data.get("content") if data else None
    if not isinstance(content, str) or not content.strip():
        logger.warning(
            "Section writer output for %s was not parseable; keeping raw text", request.section_id
        )
        return GroundedWriteResult(section_id=request.section_id, content=raw)

    known = KnownSources((source.id for source in request.source_cache), registry)
    kept, reclassified = validate_claims(
        _parse_claim_entries(data.get("claimMap")),
        known,
        request.constraints.allow_training_knowledge,
    )

    urls = {source.id: source.url for source in request.source_cache}
    claim_map = [
        entry.model_copy(update={"source_url": urls[entry.fact_id]})
        if not entry.source_url and entry.fact_id in urls
        else entry
        for entry in kept
    ]
    return GroundedWriteResult(
        section_id=request.section_id,
        content=content,
        claim_map=claim_map,
        unsourceable_claims=_parse_string_list(data.get("unsourceableClaims")) + reclassified,
    )


def section_for_request(request: GroundedWriteRequest) -> Section:
    heading = next(
        (line for line in request.section_content.split("\n") if line.startswith("#")),
        request.section_id,
    )
    return Section(id=request.section_id, heading=heading, content=request.section_content)


class GroundedSectionWriter:
    """Generates source-grounded section rewrites."""

    def __init__(
        self,
        generate: Optional[Generate] = None,
        registry: Optional[Container[str]] = None,
    ) -> None:
        self._generate = generate
        self.registry = registry

    @property
    def generate(self) -> Generate:
        if self._generate is None:
            self._generate = OpenAIGenerator(
                SECTION_WRITER_SYSTEM_PROMPT,
                temperature=settings.section_writer_temperature,
                max_output_tokens=settings.section_writer_max_tokens,
            )
        return self._generate

    def rewrite(self, request: GroundedWriteRequest) -> GroundedWriteResult:
        sources = filter_sources_for_section(section_for_request(request), request.source_cache)
        prompt = build_section_writer_prompt(request, sources)
        raw = self.generate(prompt)
        result = parse_grounded_result(raw, request, self.registry)
        logger.info(
            "Rewrote section %s: %s claims kept, %s unsourceable",
            request.section_id,
            len(result.claim_map),
            len(result.unsourceable_claims),
        )
        return result
