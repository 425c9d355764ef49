"""Pre-fetched source entries available to the section writer."""

from __future__ import annotations

from typing import List, Optional

from .base import WireModel


class SourceCacheEntry(WireModel):
    """A source the writer may cite, referenced by ``id`` (e.g. ``SRC-1``)."""

    id: str
    url: str
    title: str
    content: str = ""
    facts: Optional[List[str]] = None
    author: Optional[str] = None
    date: Optional[str] = None
