"""
APA citations and Reference construction.
"""

import re
from typing import List, Optional

from ..common.schemas import Article, Author, Reference

MAX_LISTED_AUTHORS = 7


def _initials(author: Author) -> str:
    """"Jane Mary" -> "J. M."; falls back to the Initials field."""
    if author.fore_name:
        parts = [p for p in re.split(r"[\s\-.]+", author.fore_name) if p]
        return " ".join(f"{p[0].upper()}." for p in parts)
    if author.initials:
        return " ".join(f"{c}." for c in author.initials if c.isalpha())
    return ""


def apa_author(author: Author) -> str:
    if author.is_collective:
        return author.collective_name
    initials = _initials(author)
    if author.last_name and initials:
        return f"{author.last_name}, {initials}"
    return author.last_name or initials


def format_apa_authors(authors: List[Author]) -> str:
    names = [n for n in (apa_author(a) for a in authors) if n]
    if not names:
        return "Unknown"
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} & {names[1]}"
    if len(names) <= MAX_LISTED_AUTHORS:
        return ", ".join(names[:-1]) + ", & " + names[-1]
    return ", ".join(names[:6] + ["...", "& " + names[-1]])


def _sentence(text: str) -> str:
    text = " ".join(text.split())
    if not text or text[-1] in ".?!":
        return text
    return text + "."


def format_apa(article: Article) -> str:
    """Reference-list entry: Authors (Year). Title. Journal. https://doi.org/DOI"""
    parts = [f"{format_apa_authors(article.authors)} ({article.year or 'n.d.'})."]
    if article.title:
        parts.append(_sentence(article.title))
    if article.journal:
        parts.append(_sentence(article.journal))
    citation = " ".join(parts)
    if article.doi:
        citation += f" https://doi.org/{article.doi}"
    return citation


def collapse_authors(authors: List[Author]) -> str:
    """Short display form: "A", "A & B" or "A et al."."""
    names = [a.full_name for a in authors if a.full_name]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} & {names[1]}"
    return f"{names[0]} et al."


def build_reference(article: Article, rank: int, relevance_score: Optional[int] = None) -> Reference:
    """Freeze an included article into a Reference numbered by final rank."""
    surname = article.authors[0].surname if article.authors else ""
    if surname and article.year:
        key = f"{surname} {article.year}"
    else:
        key = surname or str(rank)

    return Reference(
        key=key,
        rank=rank,
        pmid=article.pmid,
        citation_apa=format_apa(article),
        relevance_score=relevance_score,
        title=article.title,
        abstract=article.abstract,
        year=article.year,
        journal=article.journal,
        doi=article.doi,
        authors=collapse_authors(article.authors),
        author_names=[a.sort_name for a in article.authors if a.sort_name],
    )


def _in_text_surname(name: str) -> str:
    # "Smith, Jane" -> "Smith"; collective names are kept whole
    return name.split(",", 1)[0].strip() if "," in name else name.strip()


def cite_key(reference: Reference) -> str:
    """In-text author-year citation, e.g. "Smith et al., 2024"."""
    year = reference.year or "n.d."
    names = [_in_text_surname(n) for n in reference.author_names if n.strip()]
    if not names:
        return f"Unknown, {year}"
    if len(names) == 1:
        return f"{names[0]}, {year}"
    if len(names) == 2:
        return f"{names[0]} & {names[1]}, {year}"
    return f"{names[0]} et al., {year}"
