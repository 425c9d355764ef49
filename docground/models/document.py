"""Document-level data models."""

from __future__ import annotations

from typing import List, NamedTuple

from pydantic import BaseModel, Field


class Section(BaseModel):
    """A single ``##`` section; ``content`` includes the heading line."""

    id: str
    heading: str
    content: str


class SplitDocument(BaseModel):
    """A page split into frontmatter, preamble and ordered sections."""

    frontmatter: str = ""
    preamble: str = ""
    sections: List[Section] = Field(default_factory=list)


class ProtectedRange(NamedTuple):
    """Half-open ``[start, end)`` span that pattern rewrites must not touch."""

    start: int
    end: int
    kind: str
