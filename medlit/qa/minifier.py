"""
Abstract Minifier

Extractive, rubric-weighted compression of abstracts so several of them fit in
one prompt. Sentences are scored, picked greedily by score until the next
one would overflow the character budget, and re-emitted in their original
order. Text is only ever selected, never rewritten.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

# Sentence boundary: . ! ? followed by whitespace
_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


@dataclass
class ScoredUnit:
    index: int
    text: str
    score: int


def _compile(entries: List[Tuple[str, str, int]]) -> List[Tuple[str, re.Pattern]]:
    return [(tag, re.compile(pattern, flags)) for tag, pattern, flags in entries]


class AbstractMinifier:
    """
    Scores sentence-like units of an abstract and keeps the best ones.

    Scoring:
    - LABEL_BONUS if the unit opens with a findings label (RESULTS:, CONCLUSIONS:, ...)
    - KEY_TERM_BONUS per key-findings term occurrence
    - STAT_BONUS per statistical pattern occurrence (percentages, p-values, CIs, ratios)
    """

    LABEL_BONUS = 10
    KEY_TERM_BONUS = 2
    STAT_BONUS = 3

    LABEL_PATTERN = re.compile(
        r"^(?:RESULTS?|CONCLUSIONS?|FINDINGS|INTERPRETATION|"
        r"MAIN\s+OUTCOMES?(?:\s+AND\s+(?:RESULTS|MEASURES))?|"
        r"AUTHORS'?\s+CONCLUSIONS?|SIGNIFICANCE|IMPLICATIONS)\s*:",
        re.IGNORECASE,
    )

    KEY_TERMS = _compile([
        ("significant", r"\bsignificant(?:ly)?\b", re.IGNORECASE),
        ("demonstrate", r"\bdemonstrat(?:e|ed|es|ing)\b", re.IGNORECASE),
        ("effective", r"\beffective(?:ness)?\b", re.IGNORECASE),
        ("efficacy", r"\befficacy\b", re.IGNORECASE),
        ("meta_analysis", r"\bmeta-analys[ie]s\b", re.IGNORECASE),
        ("systematic_review", r"\bsystematic\s+reviews?\b", re.IGNORECASE),
        ("randomized", r"\brandomi[sz]ed\b", re.IGNORECASE),
        ("improve", r"\bimprove(?:d|ment|ments|s)?\b", re.IGNORECASE),
        ("reduce", r"\breduc(?:e|ed|es|tion|tions)\b", re.IGNORECASE),
        ("associated", r"\bassociated\s+with\b", re.IGNORECASE),
        ("conclude", r"\bconclude[sd]?\b", re.IGNORECASE),
        ("superior", r"\b(?:superior|inferior|non-inferior)\b", re.IGNORECASE),
    ])

    STAT_PATTERNS = _compile([
        ("percent", r"\d+(?:\.\d+)?\s?%", 0),
        ("p_value", r"\bp\s*[<>=≤≥]\s*0?\.\d+", re.IGNORECASE),
        ("confidence_interval", r"\b\d{2}\s?%\s*CI\b", re.IGNORECASE),
        # Case-sensitive so the word "or" does not count
        ("ratio", r"\b(?:OR|RR|HR|SMD|MD|NNT)\s*[=:]?\s*\d+(?:\.\d+)?", 0),
    ])

    def split_units(self, text: str) -> List[str]:
        units = []
        for raw in _BOUNDARY.split(text):
            unit = " ".join(raw.split())
            if unit:
                units.append(unit)
        return units

    def score_unit(self, unit: str) -> int:
        score = 0
        if self.LABEL_PATTERN.match(unit):
            score += self.LABEL_BONUS
        for _, regex in self.KEY_TERMS:
            score += self.KEY_TERM_BONUS * len(regex.findall(unit))
        for _, regex in self.STAT_PATTERNS:
            score += self.STAT_BONUS * len(regex.findall(unit))
        return score

    def minify(self, text: str, max_chars: int) -> str:
        """Compress ``text`` to at most ``max_chars`` characters.

        Args:
            text: Abstract text (plain or structured)
            max_chars: Character budget

        Returns:
            ``text`` unchanged if it fits, else selected units joined by a space,
            else a hard truncation to ``max_chars``
        """
        if not text:
            return ""
        if len(text) <= max_chars:
            return text
        if max_chars <= 0:
            return ""

        units = [
            ScoredUnit(index=i, text=u, score=self.score_unit(u))
            for i, u in enumerate(self.split_units(text))
        ]
        # Stable sort: equal scores keep original order
        ranked = sorted(units, key=lambda u: u.score, reverse=True)

        selected: List[ScoredUnit] = []
        used = 0
        for unit in ranked:
            cost = len(unit.text) + (1 if selected else 0)
            # Stop at the first unit that would overflow the budget
            if used + cost > max_chars:
                break
            selected.append(unit)
            used += cost

        if not selected:
            return text[:max_chars]

        selected.sort(key=lambda u: u.index)
        return " ".join(u.text for u in selected)


_default_minifier = AbstractMinifier()


def minify_abstract(text: str, max_chars: int) -> str:
    """Extractive compression of ``text`` to ``max_chars`` characters."""
    return _default_minifier.minify(text, max_chars)
