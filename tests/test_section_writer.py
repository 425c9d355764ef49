"""Tests for docground.llm.section_writer and docground.llm.prompts modules."""
import json
from typing import List

import pytest

from docground.llm.prompts import (
    NO_SOURCES_NOTE,
    TRUNCATION_MARKER,
    build_section_writer_prompt,
    format_source,
    format_sources_for_prompt,
)
from docground.llm.section_writer import GroundedSectionWriter, parse_grounded_result, section_for_request
from docground.models.grounding import GroundedWriteRequest, PageContext, SectionWriteConstraints
from docground.models.sources import SourceCacheEntry

HISTORY = SourceCacheEntry(id="SRC-2", url="https://example.com/history", title="Company history")
FUNDING = SourceCacheEntry(
    id="SRC-1",
    url="https://example.com/funding",
    title="Funding round announced",
    facts=["Raised $30 billion in 2026"],
)


def make_request(sources=None, strict: bool = False, **kwargs) -> GroundedWriteRequest:
    return GroundedWriteRequest(
        section_id="funding",
        section_content="## Funding\n\nAcme raised money from investors.",
        page_context=PageContext(title="Acme", entity_id="acme"),
        source_cache=[HISTORY, FUNDING] if sources is None else sources,
        constraints=SectionWriteConstraints(allow_training_knowledge=not strict),
        **kwargs,
    )


def response(claim_map=None, unsourceable=None, content: str = "## Funding\n\nAcme raised $30 billion.[^SRC-1]") -> str:
    return json.dumps(
        {
            "content": content,
            "claimMap": claim_map or [],
            "unsourceableClaims": unsourceable or [],
        }
    )


class FakeGenerator:
    def __init__(self, output: str) -> None:
        self.output = output
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.output


class TestParseGroundedResult:
    def test_strict_moves_unknown_source_claims(self) -> None:
        raw = response(
            claim_map=[
                {"claim": "Raised $30 billion", "factId": "SRC-1", "sourceUrl": "https://example.com/funding"},
                {"claim": "Has 500 staff", "factId": "SRC-9", "sourceUrl": "https://made.up"},
            ],
            unsourceable=["Founded on the moon"],
        )
        result = parse_grounded_result(raw, make_request(strict=True))

        assert [c.fact_id for c in result.claim_map] == ["SRC-1"]
        assert result.unsourceable_claims == ["Founded on the moon", "Has 500 staff"]

    def test_permissive_keeps_unknown_source_claims(self) -> None:
        raw = response(claim_map=[{"claim": "Has 500 staff", "factId": "SRC-9"}])
        result = parse_grounded_result(raw, make_request(strict=False))

        assert [c.fact_id for c in result.claim_map] == ["SRC-9"]
        assert result.unsourceable_claims == []

    def test_empty_cache_accepts_any_source(self) -> None:
        raw = response(claim_map=[{"claim": "Has 500 staff", "factId": "anything"}])
        result = parse_grounded_result(raw, make_request(sources=[], strict=True))
        assert [c.fact_id for c in result.claim_map] == ["anything"]

    def test_registry_ids_are_known(self) -> None:
        raw = response(claim_map=[{"claim": "Revenue grew", "factId": "5b0663a0"}])
        result = parse_grounded_result(raw, make_request(strict=True), registry={"5b0663a0"})

        assert [c.fact_id for c in result.claim_map] == ["5b0663a0"]
        assert result.unsourceable_claims == []

    def test_empty_cache_with_registry_keeps_unknown_claims(self) -> None:
        raw = response(claim_map=[{"claim": "Has 500 staff", "factId": "SRC-9"}])
        result = parse_grounded_result(raw, make_request(sources=[], strict=True), registry={"5b0663a0"})

        assert [c.fact_id for c in result.claim_map] == ["SRC-9"]
        assert result.unsourceable_claims == []

    def test_missing_source_url_filled_from_cache(self) -> None:
        raw = response(claim_map=[{"claim": "Raised $30 billion", "factId": "SRC-1"}])
        result = parse_grounded_result(raw, make_request())
        assert result.claim_map[0].source_url == "https://example.com/funding"

    def test_malformed_claim_entries_dropped(self) -> None:
        raw = response(
            claim_map=[
                {"claim": "", "factId": "SRC-1"},
                "not an object",
                {"factId": "SRC-1"},
                {"claim": "Raised $30 billion", "factId": "SRC-1", "quote": "raised $30 billion"},
            ]
        )
        result = parse_grounded_result(raw, make_request())

        assert len(result.claim_map) == 1
        assert result.claim_map[0].quote == "raised $30 billion"

    def test_fenced_response(self) -> None:
        raw = "```json\n" + response() + "\n```"
        result = parse_grounded_result(raw, make_request())
        assert result.content == "## Funding\n\nAcme raised $30 billion.[^SRC-1]"

    @pytest.mark.parametrize("raw", [
        "Sorry, I cannot help with that.",
        '{"claimMap": []}',
        '{"content": "   "}',
        '{"content": 42}',
        "",
    ])
    def test_unparseable_output_falls_back_to_raw_text(self, raw: str) -> None:
        result = parse_grounded_result(raw, make_request())

        assert result.section_id == "funding"
        assert result.content == raw
        assert result.claim_map == []
        assert result.unsourceable_claims == []

    def test_non_list_fields_ignored(self) -> None:
        raw = json.dumps({"content": "## Funding\n\nText.", "claimMap": "oops", "unsourceableClaims": {"a": 1}})
        result = parse_grounded_result(raw, make_request())

        assert result.content == "## Funding\n\nText."
        assert result.claim_map == []
        assert result.unsourceable_claims == []


class TestGroundedSectionWriter:
    def test_one_generation_call_per_rewrite(self) -> None:
        generate = FakeGenerator(response())
        result = GroundedSectionWriter(generate=generate).rewrite(make_request())

        assert len(generate.prompts) == 1
        assert result.section_id == "funding"
        assert result.content.startswith("## Funding")

    def test_generation_failure_propagates(self) -> None:
        def failing(prompt: str) -> str:
            raise TimeoutError("generation timed out")

        with pytest.raises(TimeoutError, match="timed out"):
            GroundedSectionWriter(generate=failing).rewrite(make_request())

    def test_prompt_orders_sources_by_relevance(self) -> None:
        generate = FakeGenerator(response())
        GroundedSectionWriter(generate=generate).rewrite(make_request())
        prompt = generate.prompts[0]

        assert prompt.index("### [SRC-1]") < prompt.index("### [SRC-2]")
        assert "Valid source IDs: SRC-1, SRC-2" in prompt

    def test_writer_registry_used_for_validation(self) -> None:
        generate = FakeGenerator(response(claim_map=[{"claim": "Revenue grew", "factId": "5b0663a0"}]))
        writer = GroundedSectionWriter(generate=generate, registry=frozenset({"5b0663a0"}))
        result = writer.rewrite(make_request(strict=True))

        assert [c.fact_id for c in result.claim_map] == ["5b0663a0"]

    def test_section_for_request_uses_first_heading(self) -> None:
        section = section_for_request(make_request())
        assert section.heading == "## Funding"
        assert section.id == "funding"

    def test_section_for_request_without_heading(self) -> None:
        request = make_request().model_copy(update={"section_content": "No heading here."})
        assert section_for_request(request).heading == "funding"


class TestPrompts:
    def test_facts_take_precedence_over_content(self) -> None:
        entry = FUNDING.model_copy(update={"content": "Long raw page text"})
        block = format_source(entry)

        assert "Key facts:" in block
        assert "- Raised $30 billion in 2026" in block
        assert "Long raw page text" not in block

    def test_content_truncated_with_marker(self) -> None:
        entry = SourceCacheEntry(id="SRC-3", url="https://x", title="Long", content="a" * 50)
        block = format_source(entry, max_chars=10)

        assert block.endswith("a" * 10 + TRUNCATION_MARKER)
        assert "a" * 11 not in block

    def test_short_content_not_truncated(self) -> None:
        entry = SourceCacheEntry(id="SRC-3", url="https://x", title="Short", content="abc")
        assert TRUNCATION_MARKER not in format_source(entry, max_chars=10)

    def test_author_and_date_included(self) -> None:
        entry = HISTORY.model_copy(update={"author": "J. Doe", "date": "2025-01-02"})
        block = format_source(entry)
        assert "Author: J. Doe" in block
        assert "Date: 2025-01-02" in block

    def test_no_sources_note(self) -> None:
        assert format_sources_for_prompt([]) == NO_SOURCES_NOTE

    def test_sources_separated(self) -> None:
        text = format_sources_for_prompt([FUNDING, HISTORY])
        assert text.count("\n\n---\n\n") == 1

    def test_prompt_includes_directions_and_strict_rule(self) -> None:
        request = make_request(strict=True, directions="Focus on 2026.")
        prompt = build_section_writer_prompt(request)

        assert "## Directions\nFocus on 2026." in prompt
        assert "STRICT MODE" in prompt
        assert "Section ID: funding" in prompt
        assert "Entity: acme" in prompt
        assert request.section_content in prompt

    def test_prompt_permissive_and_limits(self) -> None:
        request = make_request(strict=False).model_copy(
            update={"constraints": SectionWriteConstraints(require_claim_map=True, max_new_claims=3)}
        )
        prompt = build_section_writer_prompt(request)

        assert "STRICT MODE" not in prompt
        assert "REQUIRED" in prompt
        assert "Add at most 3 new cited sentences." in prompt

    def test_prompt_without_sources(self) -> None:
        prompt = build_section_writer_prompt(make_request(sources=[]))
        assert NO_SOURCES_NOTE in prompt
        assert "(No sources - claim map will be empty)" in prompt
