"""Source selection utilities."""

from .relevance import filter_sources_for_section, heading_keywords, score_source

__all__ = ["filter_sources_for_section", "heading_keywords", "score_source"]
