"""Prompt templates for grounded section rewriting and fact tagging."""

from __future__ import annotations

from typing import Iterable, List, Optional

from docground.config import settings
from docground.models.grounding import GroundedWriteRequest
from docground.models.sources import SourceCacheEntry

TRUNCATION_MARKER = "\n...(truncated)"
NO_SOURCES_NOTE = "(No sources provided - improve prose and structure only)"

SECTION_WRITER_SYSTEM_PROMPT = """You are a precise, citation-grounded writer for a reference wiki.
You rewrite one section at a time and answer with a single JSON object.
Cite only the sources you are given. Never invent source IDs or URLs."""

FACT_REF_SYSTEM_PROMPT = """You are a fact-ref tagger for a reference wiki. Identify hardcoded numbers in wiki content that match canonical facts in the provided lookup table, and return structured replacement instructions.

Rules:
1. ONLY tag numbers that are in the provided fact lookup table
2. NEVER re-tag numbers already inside <F>...</F> or <F /> tags
3. NEVER tag numbers inside code blocks, inline code, links or JSX attributes
4. Match approximately: "$30 billion", "$30B", and "30,000,000,000" can all match a $30B fact
5. Only wrap when the SEMANTIC meaning matches. If ambiguous, skip.
6. Use the EXACT text as it appears in the content for searchText (including escaped chars like \\$)
7. The factId must be the exact 8-char hex hash from the lookup table
8. Return JSON only, no prose

Return a JSON object:
{"replacements": [{"searchText": "...", "entityId": "...", "factId": "...", "displayText": "..."}]}

If no replacements are needed, return: {"replacements": []}"""


def format_source(source: SourceCacheEntry, max_chars: Optional[int] = None) -> str:
    if max_chars is None:
        max_chars = settings.max_source_content_chars
    lines: List[str] = [f"### [{source.id}] {source.title}", f"URL: {source.url}"]
    if source.author:
        lines.append(f"Author: {source.author}")
    if source.date:
        lines.append(f"Date: {source.date}")
    if source.facts:
        lines.append("Key facts:")
        lines.extend(f"- {fact}" for fact in source.facts)
    elif source.content:
        excerpt = source.content[:max_chars]
        if len(source.content) > max_chars:
            excerpt += TRUNCATION_MARKER
        lines.append("Content excerpt:")
        lines.append(excerpt)
    return "\n".join(lines)


def format_sources_for_prompt(
    sources: Iterable[SourceCacheEntry], max_chars: Optional[int] = None
) -> str:
    blocks = [format_source(source, max_chars) for source in sources]
    if not blocks:
        return NO_SOURCES_NOTE
    return "\n\n---\n\n".join(blocks)


def _knowledge_rule(allow_training_knowledge: bool) -> str:
    if allow_training_knowledge:
        return (
            "You may use your training knowledge to improve prose clarity and structure. "
            "When you add a new factual claim, cite from the source cache if a relevant source exists."
        )
    return (
        "STRICT MODE: You must ONLY add NEW claims supported by the provided source cache. "
        "Do NOT introduce NEW facts from training knowledge. "
        "Preserve existing claims from the original content as-is. "
        'If you want to add a NEW fact that is not in the cache, list it in "unsourceableClaims" '
        "and do NOT include it in the rewritten content."
    )


def build_section_writer_prompt(
    request: GroundedWriteRequest, sources: Optional[List[SourceCacheEntry]] = None
) -> str:
    """Build the user prompt for one section rewrite.

    ``sources`` is the relevance-ordered source cache; defaults to the
    request's cache in its given order.
    """
    if sources is None:
        sources = request.source_cache
    constraints = request.constraints
    context = request.page_context

    claim_map_rule = (
        'REQUIRED: You MUST populate "claimMap" with one entry per cited sentence.'
        if constraints.require_claim_map
        else 'Populate "claimMap" with one entry per sentence you cite from the source cache.'
    )
    max_claims_rule = ""
    if constraints.max_new_claims is not None:
        max_claims_rule = f"Add at most {constraints.max_new_claims} new cited sentences.\n"
    source_ids = (
        "Valid source IDs: " + ", ".join(source.id for source in sources)
        if sources
        else "(No sources - claim map will be empty)"
    )
    unsourceable_rule = (
        "Leave empty if training knowledge is allowed."
        if constraints.allow_training_knowledge
        else 'Must not appear in "content".'
    )
    word_count = len(request.section_content.split())
    low, high = round(word_count * 1.1), round(word_count * 1.5)
    entity_line = f"Entity: {context.entity_id}\n" if context.entity_id else ""
    directions = f"## Directions\n{request.directions.strip()}\n\n" if request.directions else ""

    return f"""Improve ONE section of the page "{context.title}" (type: {context.type}).
{entity_line}
## Section to Improve
Section ID: {request.section_id}

{directions}## Source Cache ({len(sources)} sources available)
{format_sources_for_prompt(sources)}

## Constraints
{_knowledge_rule(constraints.allow_training_knowledge)}
{claim_map_rule}
{max_claims_rule}
## Current Section Content
{request.section_content}

## Output Instructions
Respond with a single JSON object (no markdown code fences):
{{
  "content": "<improved MDX for this section, preserving the ## heading>",
  "claimMap": [{{"claim": "...", "factId": "<source ID>", "sourceUrl": "...", "quote": "..."}}],
  "unsourceableClaims": ["<claim you wanted to add but could not source>"]
}}

Rules:
- Use named GFM footnotes for citations: inline marker [^SRC-1] and definition [^SRC-1]: Title (URL) at the section end.
- One claimMap entry per cited sentence.
- Each "factId" in "claimMap" MUST be one of: {source_ids}
- "unsourceableClaims": {unsourceable_rule}
- Preserve the existing ## heading, EntityLinks and fact tags.
- Length: aim for roughly {low}-{high} words. Don't pad."""


def build_fact_ref_prompt(content: str, fact_lookup: str, max_chars: Optional[int] = None) -> str:
    if max_chars is None:
        max_chars = settings.fact_ref_content_chars
    excerpt = content[:max_chars]
    if len(content) > max_chars:
        excerpt += "\n... [truncated]"
    return f"""## Fact Lookup Table
{fact_lookup.strip()}

## Content to Enrich
```mdx
{excerpt}
```

Identify hardcoded numbers matching canonical facts and return replacement instructions as JSON."""
