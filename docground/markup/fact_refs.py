"""Insert ``<F>`` fact reference tags into MDX prose and repair tag artifacts."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from docground.markup.protected import detect_protected_ranges, is_protected
from docground.models.facts import FactRefResult, FactReplacement

logger = logging.getLogger(__name__)

FACT_ID_PATTERN = re.compile(r"^[0-9a-f]{8}$", re.IGNORECASE)
FACT_TAG_PATTERN = re.compile(
    r'<F\s+e="(?P<entity>[^"]*)"\s+f="(?P<fact>[^"]*)"\s*>(?P<body>.*?)</F>', re.DOTALL
)
NESTED_TAG_PATTERN = re.compile(
    r"<(?P<name>F|EntityLink)(?P<attrs>(?:\s[^<>]*)?)>"
    r"<(?P=name)(?P=attrs)>(?P<body>(?:(?!</?(?P=name)[\s/>]).)*)</(?P=name)></(?P=name)>",
    re.DOTALL,
)
STRAY_ESCAPE_PATTERN = re.compile(r"\\+(?=<(?:F|Calc|EntityLink)[\s/>])")
CODE_KINDS = frozenset({"inline_code", "code_fence"})


def is_valid_fact_id(fact_id: str) -> bool:
    return bool(FACT_ID_PATTERN.match(fact_id))


def _attr(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;")


def build_fact_tag(entity_id: str, fact_id: str, body: str) -> str:
    return f'<F e="{_attr(entity_id)}" f="{_attr(fact_id)}">{body}</F>'


def _dedupe(proposals: Iterable[FactReplacement]) -> List[FactReplacement]:
    unique: Dict[str, FactReplacement] = {}
    for proposal in proposals:
        if not proposal.search_text:
            continue
        unique.setdefault(proposal.search_text, proposal)
    return list(unique.values())


def _already_tagged(content: str, proposal: FactReplacement) -> bool:
    """True when the same (entity, fact) tag already wraps this text."""
    bodies = {proposal.search_text, "\\" + proposal.search_text}
    for match in FACT_TAG_PATTERN.finditer(content):
        if (
            match.group("entity") == _attr(proposal.entity_id)
            and match.group("fact") == _attr(proposal.fact_id)
            and match.group("body") in bodies
        ):
            return True
    return False


def find_unprotected_occurrence(content: str, search_text: str) -> Optional[Tuple[int, int]]:
    """Locate the first occurrence of ``search_text`` outside protected ranges.

    Protected ranges are computed from ``content`` on every call. The match
    absorbs an escaping backslash in front of a leading ``$``.
    """
    if not search_text:
        return None
    ranges = detect_protected_ranges(content)
    pos = 0
    while True:
        start = content.find(search_text, pos)
        if start == -1:
            return None
        end = start + len(search_text)
        if search_text.startswith("$") and start > 0 and content[start - 1] == "\\":
            start -= 1
        if not is_protected(ranges, start, end):
            return start, end
        pos = end


def apply_fact_refs(content: str, proposals: Iterable[FactReplacement]) -> FactRefResult:
    """Wrap the first unprotected occurrence of each proposal's text in an ``<F>`` tag.

    Proposals are deduplicated by ``search_text`` and applied in order of
    first appearance in ``content``. The tag body is the text actually
    matched, so existing escaping survives. Proposals with no unprotected
    occurrence are skipped without error. Running the function on its own
    output applies nothing.
    """
    unique = _dedupe(proposals)
    positioned = [(content.find(p.search_text), idx, p) for idx, p in enumerate(unique)]
    ordered = [p for first, _, p in sorted(positioned) if first != -1]

    result = content
    applied: List[FactReplacement] = []
    for proposal in ordered:
        # An existing tag with the same (entity, fact) around this text counts
        # as applied, so later unprotected occurrences stay untagged even on
        # the first pass.
        if _already_tagged(result, proposal):
            logger.debug("Fact %s.%s already tagged", proposal.entity_id, proposal.fact_id)
            continue
        span = find_unprotected_occurrence(result, proposal.search_text)
        if span is None:
            logger.debug("No unprotected occurrence of %r", proposal.search_text)
            continue
        start, end = span
        tag = build_fact_tag(proposal.entity_id, proposal.fact_id, result[start:end])
        result = result[:start] + tag + result[end:]
        applied.append(proposal)

    return FactRefResult(content=result, applied=len(applied), applied_replacements=applied)


def collapse_nested_fact_tags(content: str) -> str:
    """Collapse a tag immediately wrapping an identical-attribute tag to one tag."""
    previous = None
    while previous != content:
        previous = content
        content = NESTED_TAG_PATTERN.sub(
            lambda m: f"<{m.group('name')}{m.group('attrs')}>{m.group('body')}</{m.group('name')}>",
            content,
        )
    return content


def strip_stray_tag_escapes(content: str) -> str:
    """Remove backslashes directly in front of an opening annotation tag.

    Escapes inside inline code and fenced blocks are left alone.
    """
    code = [rng for rng in detect_protected_ranges(content) if rng.kind in CODE_KINDS]

    def _strip(match: "re.Match[str]") -> str:
        if is_protected(code, match.start(), match.end()):
            return match.group(0)
        return ""

    return STRAY_ESCAPE_PATTERN.sub(_strip, content)


def repair_fact_tags(content: str) -> str:
    return collapse_nested_fact_tags(strip_stray_tag_escapes(content))
