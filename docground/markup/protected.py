"""Detect spans of MDX text that pattern-based rewrites must not touch.

Categories are claimed in priority order. A span claimed by an earlier
category is never reconsidered by a later one; a later construct that
encloses an earlier span only claims the gaps around it, so the returned
ranges never overlap.

Unterminated frontmatter, fences, paired tags and link URLs protect to the
end of the document.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Pattern

from docground.models.document import ProtectedRange

TAG_NAMES = ("F", "Calc", "EntityLink")

FRONTMATTER_DELIMITER = re.compile(r"^---[ \t\r]*$", re.MULTILINE)
FENCE_LINE = re.compile(r"^[ \t]{0,3}(`{3,}|~{3,})")
INLINE_CODE = re.compile(r"`[^`\n]+`")

# Attribute text: quoted strings and {expressions} may contain '>'.
_ATTRS = r"""(?:[^<>"'{}/]|/(?!>)|"[^"]*"|'[^']*'|\{[^{}]*\})*"""
_TAG_NAME_ALT = "|".join(TAG_NAMES)
TAG_OPEN = re.compile(rf"<({_TAG_NAME_ALT})(?=[\s/>]){_ATTRS}(/?)>")

_LINK_LABEL = r"!?\[(?!\^)(?:[^\[\]\n]|\[[^\[\]\n]*\])*\]"
INLINE_LINK_START = re.compile(_LINK_LABEL + r"\(")
REFERENCE_LINK = re.compile(_LINK_LABEL + r"\[[^\[\]\n]*\]")
REFERENCE_DEFINITION = re.compile(
    r"^[ \t]{0,3}\[(?!\^)[^\[\]\n]+\]:[ \t]*\S[^\n]*", re.MULTILINE
)


class _Claims:
    """Accumulates non-overlapping claimed spans."""

    def __init__(self) -> None:
        self.ranges: List[ProtectedRange] = []

    def containing(self, pos: int) -> Optional[ProtectedRange]:
        for rng in self.ranges:
            if rng.start <= pos < rng.end:
                return rng
        return None

    def claim(self, start: int, end: int, kind: str) -> None:
        """Claim ``[start, end)`` minus whatever is already claimed."""
        cursor = start
        for rng in sorted(self.ranges):
            if rng.end <= cursor:
                continue
            if rng.start >= end:
                break
            if rng.start > cursor:
                self.ranges.append(ProtectedRange(cursor, rng.start, kind))
            cursor = max(cursor, rng.end)
        if cursor < end:
            self.ranges.append(ProtectedRange(cursor, end, kind))


def is_protected(ranges: Iterable[ProtectedRange], start: int, end: int) -> bool:
    """True when ``[start, end)`` intersects any of ``ranges`` (sorted)."""
    for rng in ranges:
        if rng.start >= end:
            break
        if start < rng.end and end > rng.start:
            return True
    return False


def _claim_frontmatter(text: str, claims: _Claims) -> None:
    first_line_end = text.find("\n")
    first_line = text if first_line_end == -1 else text[:first_line_end]
    if first_line.rstrip() != "---":
        return
    if first_line_end == -1:
        claims.claim(0, len(text), "frontmatter")
        return
    closing = FRONTMATTER_DELIMITER.search(text, first_line_end + 1)
    if closing is None:
        claims.claim(0, len(text), "frontmatter")
        return
    end = closing.end()
    if text.startswith("\n", end):
        end += 1
    claims.claim(0, end, "frontmatter")


def _claim_fences(text: str, claims: _Claims) -> None:
    offset = 0
    open_start: Optional[int] = None
    open_char = ""
    for line in text.splitlines(keepends=True):
        line_start = offset
        offset += len(line)
        if open_start is None and claims.containing(line_start) is not None:
            continue
        match = FENCE_LINE.match(line)
        if not match:
            continue
        fence_char = match.group(1)[0]
        if open_start is None:
            open_start = line_start
            open_char = fence_char
        elif fence_char == open_char:
            claims.claim(open_start, offset, "code_fence")
            open_start = None
    if open_start is not None:
        claims.claim(open_start, len(text), "code_fence")


def _tag_end(text: str, match: "re.Match[str]", claims: _Claims) -> int:
    """End offset of the tag opened by ``match``, counting same-name nesting."""
    if match.group(2) == "/":
        return match.end()
    name = match.group(1)
    token = re.compile(rf"<(/?){re.escape(name)}(?=[\s/>]){_ATTRS}(/?)>")
    depth = 1
    pos = match.end()
    while True:
        inner = token.search(text, pos)
        if inner is None:
            return len(text)
        pos = inner.end()
        if claims.containing(inner.start()) is not None:
            continue
        if inner.group(1) == "/":
            depth -= 1
            if depth == 0:
                return inner.end()
        elif inner.group(2) != "/":
            depth += 1


def _link_end(text: str, match: "re.Match[str]", claims: _Claims) -> int:
    """Scan a link destination with balanced parentheses."""
    depth = 1
    pos = match.end()
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    return len(text)


def _claim_pattern(
    text: str,
    pattern: Pattern[str],
    claims: _Claims,
    kind: str,
    end_of: Optional[Callable[[str, "re.Match[str]", _Claims], int]] = None,
) -> None:
    pos = 0
    while pos < len(text):
        match = pattern.search(text, pos)
        if match is None:
            return
        blocker = claims.containing(match.start())
        if blocker is not None:
            pos = blocker.end
            continue
        end = end_of(text, match, claims) if end_of else match.end()
        claims.claim(match.start(), end, kind)
        pos = end


def detect_protected_ranges(text: str) -> List[ProtectedRange]:
    """Return sorted, non-overlapping protected ranges for ``text``.

    Ranges are offsets into ``text`` as given; recompute after any edit.
    """
    claims = _Claims()
    if not text:
        return []
    _claim_frontmatter(text, claims)
    _claim_fences(text, claims)
    _claim_pattern(text, INLINE_CODE, claims, "inline_code")
    _claim_pattern(text, TAG_OPEN, claims, "tag", _tag_end)
    _claim_pattern(text, INLINE_LINK_START, claims, "inline_link", _link_end)
    _claim_pattern(text, REFERENCE_LINK, claims, "reference_link")
    _claim_pattern(text, REFERENCE_DEFINITION, claims, "reference_definition")
    return sorted(claims.ranges)
