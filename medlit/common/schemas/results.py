"""
Pipeline result schemas

AnswerResult is produced by the retrieval orchestrator, SynthesisResult by the
synthesis composer. References are frozen once built.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Strategy(str, Enum):
    """How an answer was produced"""
    PARAMETRIC = "parametric"
    RETRIEVAL = "retrieval"


class Reference(BaseModel):
    """Citable form of one included document"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Stable key, e.g. 'Smith 2024'")
    rank: int = Field(ge=1)
    pmid: str
    citation_apa: str = ""
    relevance_score: Optional[int] = Field(default=None, ge=1, le=10)
    title: str = ""
    abstract: str = ""
    year: str = ""
    journal: str = ""
    doi: str = ""
    authors: str = Field(default="", description="Collapsed author string: 'A', 'A & B' or 'A et al.'")
    author_names: List[str] = Field(default_factory=list, description="Inverted names, 'Last, Fore'")

    @property
    def ris(self) -> str:
        from ...synth.ris import ris_entry

        return ris_entry(self)


class TokenUsage(BaseModel):
    """Character-based token estimates (len/4), not billing-accurate"""
    input: int = Field(default=0, ge=0)
    output: int = Field(default=0, ge=0)

    @computed_field
    @property
    def total(self) -> int:
        return self.input + self.output

    def add(self, sent: str, received: str = "") -> None:
        self.input += len(sent) // 4
        self.output += len(received) // 4


class AnswerResult(BaseModel):
    """Terminal state of one QA call"""
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    confidence: int = Field(default=0, ge=0, le=10, description="0 when never computed")
    strategy: Strategy
    novel_detected: bool = False
    source_pmids: List[str] = Field(default_factory=list)
    minified_context: str = ""


class SynthesisResult(BaseModel):
    """Cited multi-document (or single-document) synthesis"""
    question: str
    synthesis: str
    papers_searched: int = 0
    papers_scored: int = 0
    papers_used: int = 0
    references: List[Reference] = Field(default_factory=list)
    ris: str = ""
    tokens: TokenUsage = Field(default_factory=TokenUsage)

    def bibtex(self) -> str:
        from ...synth.bibtex import generate_bibtex

        return generate_bibtex(self.references)
