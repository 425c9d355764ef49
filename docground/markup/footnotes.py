"""Footnote renumbering and definition-line normalization.

Two marker dialects are accepted in the body: numeric (``[^3]``) and
namespaced (``[^SRC-7]``). Identity is the marker string. Renumbering
assigns sequential integers by first appearance in the body and rebuilds a
single definitions block at the end of the document.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"\[\^([^\]\s]+)\]")
DEFINITION_PATTERN = re.compile(r"^\[\^([^\]\s]+)\]:[ \t]*(\S.*)$", re.MULTILINE)
DEFINITION_LINE_PATTERN = re.compile(r"^\[\^([^\]\s]+)\]:[ \t]*\S.*(?:\n|$)", re.MULTILINE)

NUMERIC_DEFINITION = re.compile(r"^\[\^(\d+)\]:\s*(.*)")
MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\((https?://[^)]+)\)")
TEXT_THEN_URL = re.compile(r"^(.+?)\s+(https?://\S+)\s*$")
BARE_URL = re.compile(r"^(https?://\S+)\s*$")
QUOTED_TITLE = (re.compile(r'"([^"]+)"'), re.compile("“([^”]+)”"))


def renumber_footnotes(content: str) -> str:
    """Renumber footnotes to ``[^1]``, ``[^2]``, ... by first body appearance.

    The first definition of a marker wins. Markers without a definition are
    renumbered and no definition is emitted for them. Definitions whose
    marker never appears in the body are dropped. Content without any
    marker is returned unchanged.
    """
    if not MARKER_PATTERN.search(content):
        return content

    definitions: Dict[str, str] = {}
    for match in DEFINITION_PATTERN.finditer(content):
        definitions.setdefault(match.group(1), match.group(2).rstrip())

    body = DEFINITION_LINE_PATTERN.sub("", content)
    body = re.sub(r"\n{3,}", "\n\n", body).rstrip()

    # marker -> assigned number, insertion-ordered
    assigned: Dict[str, int] = {}
    for match in MARKER_PATTERN.finditer(body):
        assigned.setdefault(match.group(1), len(assigned) + 1)

    orphans = [marker for marker in definitions if marker not in assigned]
    if orphans:
        logger.warning("Dropping footnote definitions with no reference: %s", ", ".join(orphans))
    missing = [marker for marker in assigned if marker not in definitions]
    if missing:
        logger.warning("Footnote markers without definitions: %s", ", ".join(missing))

    if not assigned:
        return body + "\n"

    renumbered = MARKER_PATTERN.sub(lambda m: f"[^{assigned[m.group(1)]}]", body)
    definition_lines = [
        f"[^{number}]: {definitions[marker]}"
        for marker, number in assigned.items()
        if marker in definitions
    ]
    if not definition_lines:
        return renumbered + "\n"
    return renumbered + "\n\n" + "\n".join(definition_lines) + "\n"


class FootnoteFormat(str, Enum):
    MARKDOWN_LINK = "markdown-link"
    TEXT_THEN_URL = "text-then-url"
    BARE_URL = "bare-url"
    NO_URL = "no-url"


class FootnoteDefinition(BaseModel):
    """Classification of a numeric footnote definition line."""

    number: int
    format: FootnoteFormat
    original_line: str
    normalized_line: Optional[str] = None
    url: Optional[str] = None
    link_text: Optional[str] = None


def extract_best_title(text: str) -> str:
    """Pick a link title from the text preceding a URL.

    ``'Author (2024). "Title." Journal'`` -> ``'Title (Author (2024), Journal)'``
    """
    for pattern in QUOTED_TITLE:
        quoted = pattern.search(text)
        if not quoted:
            continue
        title = re.sub(r"[.,]+$", "", quoted.group(1)).strip()
        before = re.sub(r"[,\s]+$", "", text[: quoted.start()]).strip()
        after = text[quoted.end():]
        after = re.sub(r"[,.\s]+$", "", re.sub(r"^[,.\s]+", "", after)).strip()
        context = [re.sub(r"[.,]+$", "", part).strip() for part in (before, after) if len(part) > 3]
        return f"{title} ({', '.join(context)})" if context else title
    return re.sub(r"[,.:;\s]+$", "", text).strip()


def classify_footnote(line: str) -> Optional[FootnoteDefinition]:
    """Classify a ``[^N]: ...`` line; None for anything else."""
    match = NUMERIC_DEFINITION.match(line)
    if not match:
        return None
    number = int(match.group(1))
    text = match.group(2).strip()

    link = MARKDOWN_LINK.search(text)
    if link:
        return FootnoteDefinition(
            number=number,
            format=FootnoteFormat.MARKDOWN_LINK,
            original_line=line,
            url=link.group(2),
            link_text=link.group(1),
        )

    text_url = TEXT_THEN_URL.match(text)
    if text_url:
        title = extract_best_title(re.sub(r"[,:.]+\s*$", "", text_url.group(1)).strip())
        url = text_url.group(2)
        return FootnoteDefinition(
            number=number,
            format=FootnoteFormat.TEXT_THEN_URL,
            original_line=line,
            normalized_line=f"[^{number}]: [{title}]({url})",
            url=url,
            link_text=title,
        )

    bare = BARE_URL.match(text)
    if bare:
        return FootnoteDefinition(
            number=number, format=FootnoteFormat.BARE_URL, original_line=line, url=bare.group(1)
        )

    return FootnoteDefinition(
        number=number, format=FootnoteFormat.NO_URL, original_line=line, link_text=text or None
    )


def normalize_footnote_definitions(content: str) -> str:
    """Rewrite ``text https://url`` definitions into ``[Title](url)`` form."""
    lines = content.split("\n")
    fixed = 0
    for idx, line in enumerate(lines):
        info = classify_footnote(line)
        if info and info.normalized_line:
            lines[idx] = info.normalized_line
            fixed += 1
    if fixed:
        logger.debug("Normalized %s footnote definitions", fixed)
    return "\n".join(lines)
