"""Split MDX pages into ``##`` sections and reassemble them."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from docground.models.document import Section, SplitDocument

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^(---\r?\n.*?\r?\n---(?:\r?\n|$))", re.DOTALL)
FENCE_PATTERN = re.compile(r"^(`{3,}|~{3,})")
H2_PATTERN = re.compile(r"^##[ \t]")
HEADING_MARKS = re.compile(r"^#+\s*")
NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def heading_to_id(heading: str) -> str:
    """``'## Funding (2023–2025)'`` -> ``'funding-2023-2025'``."""
    text = HEADING_MARKS.sub("", heading.strip()).lower()
    return NON_ALNUM_RUN.sub("-", text).strip("-")


def _build_section(heading: str, lines: List[str]) -> Section:
    return Section(
        id=heading_to_id(heading),
        heading=heading,
        content="\n".join([heading, *lines]),
    )


def split_into_sections(content: str) -> SplitDocument:
    """Split ``content`` into frontmatter, preamble and ``##`` sections.

    A fence line toggles fence state; headings inside an open fence do not
    start a section. Deeper headings stay inside their parent section.
    """
    frontmatter = ""
    body = content
    match = FRONTMATTER_PATTERN.match(content)
    if match:
        frontmatter = match.group(1)
        body = content[len(frontmatter):]

    sections: List[Section] = []
    preamble_lines: List[str] = []
    current_heading = ""
    current_lines: Optional[List[str]] = None
    in_fence = False

    for line in body.split("\n"):
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence

        if not in_fence and H2_PATTERN.match(line):
            if current_lines is not None:
                sections.append(_build_section(current_heading, current_lines))
            current_heading = line
            current_lines = []
        elif current_lines is not None:
            current_lines.append(line)
        else:
            preamble_lines.append(line)

    if current_lines is not None:
        sections.append(_build_section(current_heading, current_lines))

    logger.debug("Split document into %s sections", len(sections))
    return SplitDocument(
        frontmatter=frontmatter,
        preamble="\n".join(preamble_lines),
        sections=sections,
    )


def reassemble_sections(split: SplitDocument) -> str:
    """Join parts with one blank line; the result ends with exactly one newline."""
    parts: List[str] = []
    if split.frontmatter:
        parts.append(split.frontmatter.rstrip())
    if split.preamble.strip():
        parts.append(split.preamble.rstrip())
    for section in split.sections:
        parts.append(section.content.rstrip())

    result = "\n\n".join(parts) + "\n"
    result = re.sub(r"\n{3,}", "\n\n", result)
    return result

