"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

import re
from typing import Optional

NEUTRAL_SCORE = 5

# First standalone integer 1-10
_SCORE_RE = re.compile(r"\b(10|[1-9])\b")


def parse_score(raw: str) -> Optional[int]:
    """Return the first standalone 1-10 integer in ``raw``, or None."""
    if not raw:
        return None
    match = _SCORE_RE.search(raw)
    if match is None:
        return None
    return int(match.group(1))


def extract_field(raw: str, label: str) -> Optional[str]:
    """Value of a ``LABEL: value`` line, tolerating markdown bold and case.

    Example: extract_field("CONFIDENCE: 9\\nANSWER: yes", "answer") -> "yes"
    """
    if not raw:
        return None
    pattern = re.compile(
        rf"^[ \t*_#>-]*{re.escape(label)}[ \t*_]*:[ \t*_]*(.*?)[ \t*_]*$",
        re.IGNORECASE | re.MULTILINE,
    )
    match = pattern.search(raw)
    if match is None:
        return None
    return match.group(1).strip()


def parse_answer(raw: str) -> str:
    """Answer text from a structured response, else the first non-empty line."""
    value = extract_field(raw, "ANSWER")
    if value:
        return value
    for line in (raw or "").splitlines():
        if line.strip():
            return line.strip()
    return ""
