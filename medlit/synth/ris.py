"""
RIS export

Line-oriented tagged records for reference managers (Zotero, EndNote,
Mendeley). Every value is flattened to one line before emission.
"""

import re
from typing import List

from ..common.schemas import Reference

MAX_ABSTRACT_CHARS = 5000

_LINE_BREAKS = re.compile(r"[\r\n\t]+")


def sanitize_ris(value: str) -> str:
    return " ".join(_LINE_BREAKS.sub(" ", value or "").split())


def split_author_string(authors: str) -> List[str]:
    """Undo upstream collapsing: "A et al." -> [A], "A & B" -> [A, B]."""
    authors = (authors or "").strip()
    if not authors:
        return []

    match = re.match(r"^(.*?)\s*,?\s+et\s+al\.?$", authors, re.IGNORECASE)
    if match:
        first = match.group(1).strip()
        return [first] if first else []

    if " & " in authors or ";" in authors:
        return [a.strip() for a in re.split(r"\s+&\s+|;", authors) if a.strip()]

    return [authors]


def ris_entry(ref: Reference) -> str:
    """One RIS record, from "TY  - JOUR" to "ER  -"."""
    lines = ["TY  - JOUR"]

    authors = ref.author_names or split_author_string(ref.authors) or ["Unknown"]
    for author in authors:
        value = sanitize_ris(author)
        if value:
            lines.append(f"AU  - {value}")

    def add(tag: str, value: str) -> None:
        value = sanitize_ris(value)
        if value:
            lines.append(f"{tag}  - {value}")

    add("TI", ref.title)
    add("JO", ref.journal)
    add("PY", ref.year)
    add("DO", ref.doi)
    add("AN", ref.pmid)
    add("AB", (ref.abstract or "")[:MAX_ABSTRACT_CHARS])
    lines.append("DB  - PubMed")
    if ref.pmid:
        add("UR", f"https://pubmed.ncbi.nlm.nih.gov/{ref.pmid.strip()}/")
    lines.append("ER  -")

    return "\n".join(lines)


def generate_ris(refs: List[Reference]) -> str:
    """RIS text for a batch of references; empty string for no references."""
    if not refs:
        return ""
    return "\n\n".join(ris_entry(r) for r in refs) + "\n"
