"""Keyword-overlap ranking of cached sources against a section heading."""

from __future__ import annotations

import re
from typing import List, Set

from docground.models.document import Section
from docground.models.sources import SourceCacheEntry

HEADING_MARKS = re.compile(r"^#+\s*")
WORD_PATTERN = re.compile(r"\w+")
MIN_KEYWORD_LENGTH = 4


def heading_keywords(heading: str) -> Set[str]:
    """Case-folded heading words longer than three characters."""
    text = HEADING_MARKS.sub("", heading.strip()).casefold()
    return {word for word in WORD_PATTERN.findall(text) if len(word) >= MIN_KEYWORD_LENGTH}


def score_source(source: SourceCacheEntry, keywords: Set[str]) -> int:
    haystack = " ".join([source.title, *(source.facts or [])]).casefold()
    return sum(haystack.count(keyword) for keyword in keywords)


def filter_sources_for_section(
    section: Section, sources: List[SourceCacheEntry]
) -> List[SourceCacheEntry]:
    """Reorder ``sources`` by relevance to ``section``; nothing is removed."""
    keywords = heading_keywords(section.heading)
    if not keywords:
        return list(sources)
    return sorted(sources, key=lambda source: score_source(source, keywords), reverse=True)
