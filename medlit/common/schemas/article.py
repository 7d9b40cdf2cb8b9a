"""
Bibliographic record schema

Candidate documents as returned by the literature source. Authors keep their
structured name parts so that every citation format can be regenerated.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class Author(BaseModel):
    """One author: a personal name or a collective/group name"""
    last_name: str = ""
    fore_name: str = ""
    initials: str = ""
    collective_name: str = ""

    @property
    def is_collective(self) -> bool:
        return bool(self.collective_name)

    @property
    def full_name(self) -> str:
        """Display name, e.g. "Jane Q Smith" or "COVID-19 Study Group"."""
        if self.is_collective:
            return self.collective_name
        return " ".join(p for p in (self.fore_name, self.last_name) if p)

    @property
    def sort_name(self) -> str:
        """Inverted name, e.g. "Smith, Jane Q"."""
        if self.is_collective:
            return self.collective_name
        if self.last_name and self.fore_name:
            return f"{self.last_name}, {self.fore_name}"
        return self.last_name or self.fore_name

    @property
    def surname(self) -> str:
        if self.is_collective:
            return self.collective_name
        if self.last_name:
            return self.last_name
        parts = self.fore_name.split()
        return parts[-1] if parts else ""


class AbstractSection(BaseModel):
    """Labelled part of a structured abstract (BACKGROUND, RESULTS, ...)"""
    label: str = ""
    text: str = ""


class Article(BaseModel):
    """A retrieved bibliographic record"""
    pmid: str = Field(..., description="PubMed identifier")
    title: str = ""
    abstract: str = ""
    abstract_sections: List[AbstractSection] = Field(default_factory=list)
    authors: List[Author] = Field(default_factory=list)
    year: str = ""
    journal: str = ""
    journal_abbrev: str = ""
    volume: str = ""
    issue: str = ""
    pages: str = ""
    language: str = ""
    doi: str = ""
    pmc_id: Optional[str] = None


class SearchPage(BaseModel):
    """Result of one search call: total hit count and ordered identifiers"""
    count: int = 0
    ids: List[str] = Field(default_factory=list)


# ============================================================================
# Link and vocabulary lookups
# ============================================================================

class Link(BaseModel):
    """One linked PubMed record; ``score`` is set for similarity links only"""
    id: str
    score: Optional[int] = None


class LinkResult(BaseModel):
    """ELink neighbours of one source record"""
    source_id: str
    link_name: str = Field(..., description="e.g. 'pubmed_pubmed_citedin'")
    links: List[Link] = Field(default_factory=list)


class MeshRecord(BaseModel):
    """A MeSH descriptor"""
    ui: str = ""
    name: str = ""
    scope_note: str = ""
    tree_numbers: List[str] = Field(default_factory=list)
    entry_terms: List[str] = Field(default_factory=list)
    annotation: str = ""
