"""
Query Expander

Turns a natural-language question into a PubMed-friendly search string.
Deliberately lossy: strips citation preambles, leading auxiliaries and the
question mark, then caps the length.
"""

import re

MAX_QUERY_LENGTH = 150


class QueryExpander:
    """
    Heuristic question-to-query rewriter.

    Pipeline:
    1. Drop "According to / Based on a <year> <study type>," preambles
    2. Drop a leading interrogative auxiliary (Does, Is, Can, ...)
    3. Drop one trailing "?"
    4. Collapse whitespace
    5. Truncate to max_length characters (mid-token cuts are fine)
    """

    STUDY_TYPES = [
        r"meta[-\s]?analys[ie]s",
        r"systematic\s+reviews?",
        r"randomi[sz]ed\s+(?:controlled\s+)?trials?",
        r"RCTs?",
        r"clinical\s+trials?",
        r"trials?",
        r"studies",
        r"study",
        r"reviews?",
        r"research",
        r"evidence",
        r"paper",
    ]

    AUXILIARIES = [
        "does", "do", "did", "is", "are", "was", "were",
        "can", "could", "should", "would", "will", "has", "have", "may",
    ]

    def __init__(self, max_length: int = MAX_QUERY_LENGTH):
        self.max_length = max_length
        self._preamble = re.compile(
            r"^\s*(?:according\s+to|based\s+on)\s+(?:(?:a|an|the|recent|new|newly\s+published)\s+)*"
            r"(?:\d{4}\s+)?(?:" + "|".join(self.STUDY_TYPES) + r")\s*,\s*",
            re.IGNORECASE,
        )
        self._auxiliary = re.compile(
            r"^\s*(?:" + "|".join(self.AUXILIARIES) + r")\s+",
            re.IGNORECASE,
        )

    def expand(self, question: str) -> str:
        if not question:
            return ""

        text = self._preamble.sub("", question, count=1)
        text = self._auxiliary.sub("", text, count=1)

        text = text.rstrip()
        if text.endswith("?"):
            text = text[:-1]

        text = re.sub(r"\s+", " ", text).strip()

        if len(text) > self.max_length:
            text = text[:self.max_length]
        return text


_default_expander = QueryExpander()


def expand_query(question: str) -> str:
    """Search query for ``question``; never longer than MAX_QUERY_LENGTH."""
    return _default_expander.expand(question)
