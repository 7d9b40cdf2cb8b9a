"""
medlit Schemas

Bibliographic records and pipeline results.
"""

from .article import Author, AbstractSection, Article, SearchPage, Link, LinkResult, MeshRecord
from .results import Strategy, Reference, TokenUsage, AnswerResult, SynthesisResult

__all__ = [
    "Author",
    "AbstractSection",
    "Article",
    "SearchPage",
    "Link",
    "LinkResult",
    "MeshRecord",
    "Strategy",
    "Reference",
    "TokenUsage",
    "AnswerResult",
    "SynthesisResult",
]
