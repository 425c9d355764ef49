"""Shared fixtures for the docground test suite."""
import json
import re
from typing import Callable, Dict, List, Optional

import pytest

from docground.models.sources import SourceCacheEntry

SECTION_ID = re.compile(r"^Section ID: (\S+)$", re.MULTILINE)


class ScriptedGenerator:
    """Stands in for the generation call; answers by section id."""

    def __init__(self, contents: Dict[str, str], claim_map: Optional[List[dict]] = None) -> None:
        self.contents = contents
        self.claim_map = claim_map or []
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        section_id = SECTION_ID.search(prompt).group(1)
        return json.dumps(
            {
                "content": self.contents[section_id],
                "claimMap": self.claim_map,
                "unsourceableClaims": [],
            }
        )


@pytest.fixture
def scripted_generator() -> Callable[..., ScriptedGenerator]:
    return ScriptedGenerator


@pytest.fixture
def source_cache() -> List[SourceCacheEntry]:
    return [
        SourceCacheEntry(id="SRC-2", url="https://example.com/history", title="Company history"),
        SourceCacheEntry(
            id="SRC-1",
            url="https://example.com/funding",
            title="Funding round announced",
            facts=["Raised $30 billion in 2026"],
        ),
    ]
