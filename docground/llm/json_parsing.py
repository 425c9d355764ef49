"""Tolerant JSON extraction from generator output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\r?\n")
TRAILING_FENCE = re.compile(r"\r?\n?```[ \t]*$")


def _balanced_object(text: str, start: int) -> Optional[str]:
    """Return the ``{...}`` block opening at ``start``, honouring strings."""
    depth = 0
    in_string = False
    escape_next = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def extract_json_object(raw: str) -> Optional[Dict[str, Any]]:
    """Parse the first JSON object in ``raw``, ignoring fences and prose around it."""
    text = TRAILING_FENCE.sub("", LEADING_FENCE.sub("", raw.strip())).strip()
    start = text.find("{")
    while start != -1:
        block = _balanced_object(text, start)
        if block is None:
            break
        try:
            parsed = json.loads(block)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("No JSON object found in generator output (%s chars)", len(raw))
        return None
    return parsed if isinstance(parsed, dict) else None
