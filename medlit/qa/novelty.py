"""
Novelty Detector

Flags questions that probably need knowledge newer than a model's training
cutoff: an explicit recent year, or recency vocabulary.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# Years at or after this are treated as post-cutoff
RECENT_YEAR_FLOOR = 2024
RECENT_YEAR_CEILING = 2099

# Four digits not glued to letters or other digits (so "NCT2024" and "12024" do not count)
_YEAR_TOKEN = re.compile(r"(?<![A-Za-z0-9])(\d{4})(?![A-Za-z0-9])")


@dataclass
class NoveltyResult:
    """Outcome of novelty detection"""
    is_novel: bool
    matched: List[str] = field(default_factory=list)  # tags of matching rules
    recent_year: Optional[int] = None


# (tag, pattern) pairs; extend here without touching detection logic
NOVELTY_PATTERNS: List[Tuple[str, str]] = [
    ("recent", r"\brecent\b"),
    ("latest", r"\blatest\b"),
    ("new_study", r"\bnew\s+stud(?:y|ies)\b"),
    ("new_research", r"\bnew\s+research\b"),
    ("newly_published", r"\bnewly\s+published\b"),
    ("this_year", r"\bthis\s+year\b"),
    ("last_month", r"\blast\s+month\b"),
    ("just_published", r"\bjust\s+published\b"),
]


class NoveltyDetector:
    """
    Detects recency signals in a question.

    Rules (any match means novel):
    1. A standalone 4-digit year >= RECENT_YEAR_FLOOR
    2. A phrase from NOVELTY_PATTERNS
    """

    def __init__(self, patterns: Optional[List[Tuple[str, str]]] = None, year_floor: int = RECENT_YEAR_FLOOR):
        self.year_floor = year_floor
        self._patterns: List[Tuple[str, re.Pattern]] = [
            (tag, re.compile(p, re.IGNORECASE)) for tag, p in (patterns or NOVELTY_PATTERNS)
        ]

    def _recent_year(self, text: str) -> Optional[int]:
        for match in _YEAR_TOKEN.finditer(text):
            value = int(match.group(1))
            if self.year_floor <= value <= RECENT_YEAR_CEILING:
                return value
        return None

    def detect(self, question: str) -> NoveltyResult:
        if not question or not question.strip():
            return NoveltyResult(is_novel=False)

        matched = []
        year = self._recent_year(question)
        if year is not None:
            matched.append("recent_year")

        for tag, regex in self._patterns:
            if regex.search(question):
                matched.append(tag)

        return NoveltyResult(is_novel=bool(matched), matched=matched, recent_year=year)


_default_detector = NoveltyDetector()


def detect_novelty(question: str) -> bool:
    """True if the question plausibly needs post-training knowledge."""
    return _default_detector.detect(question).is_novel
