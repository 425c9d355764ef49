"""Ask the generator which numbers in a page match canonical facts."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from docground.config import settings
from docground.llm.json_parsing import extract_json_object
from docground.llm.openai_client import Generate, OpenAIGenerator
from docground.llm.prompts import FACT_REF_SYSTEM_PROMPT, build_fact_ref_prompt
from docground.markup.fact_refs import apply_fact_refs, is_valid_fact_id
from docground.models.facts import FactRefResult, FactReplacement

logger = logging.getLogger(__name__)


def parse_fact_ref_proposals(raw: str) -> List[FactReplacement]:
    """Keep complete proposals whose fact id is an 8-char hex hash."""
    data = extract_json_object(raw)
    items = data.get("replacements") if data else None
    if not isinstance(items, list):
        return []
    proposals: List[FactReplacement] = []
    for item in items:
        try:
            proposal = FactReplacement.model_validate(item)
        except ValidationError:
            continue
        if not (proposal.search_text and proposal.entity_id and proposal.display_text):
            continue
        if not is_valid_fact_id(proposal.fact_id):
            logger.debug("Rejecting proposal with invalid fact id %r", proposal.fact_id)
            continue
        proposals.append(proposal)
    return proposals


class FactRefProposer:
    """Generator-backed source of fact reference proposals."""

    def __init__(self, generate: Optional[Generate] = None) -> None:
        self.generate = generate or OpenAIGenerator(
            FACT_REF_SYSTEM_PROMPT,
            temperature=0.0,
            max_output_tokens=settings.fact_ref_max_tokens,
        )

    def propose(self, content: str, fact_lookup: str) -> List[FactReplacement]:
        if not fact_lookup.strip():
            return []
        raw = self.generate(build_fact_ref_prompt(content, fact_lookup))
        return parse_fact_ref_proposals(raw)

    def enrich(self, content: str, fact_lookup: str) -> FactRefResult:
        proposals = self.propose(content, fact_lookup)
        result = apply_fact_refs(content, proposals)
        logger.info("Inserted %s of %s proposed fact refs", result.applied, len(proposals))
        return result
