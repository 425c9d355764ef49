"""Pure text operations over MDX documents."""

from .fact_refs import apply_fact_refs, collapse_nested_fact_tags, repair_fact_tags, strip_stray_tag_escapes
from .footnotes import normalize_footnote_definitions, renumber_footnotes
from .protected import detect_protected_ranges, is_protected
from .sections import heading_to_id, reassemble_sections, split_into_sections

__all__ = [
    "apply_fact_refs",
    "collapse_nested_fact_tags",
    "detect_protected_ranges",
    "heading_to_id",
    "is_protected",
    "normalize_footnote_definitions",
    "reassemble_sections",
    "renumber_footnotes",
    "repair_fact_tags",
    "split_into_sections",
    "strip_stray_tag_escapes",
]
