"""
Synthesis Agent - Cited Literature Synthesis

Searches PubMed, scores papers for relevance, and writes a cited synthesis.

Key Components:
- RelevanceScorer: LLM 1-10 rating of one paper against the question
- Citation helpers: APA strings, RIS and BibTeX exports
- SynthesisComposer: search -> fetch -> score -> filter -> rank -> compose -> cite

Pipeline:
1. Search and fetch candidate papers
2. Score each paper sequentially (failures fall back to 5)
3. Keep papers at/above threshold, best first
4. Compose synthesis with author-year citations and emit RIS
"""

from .relevance import RelevanceScorer, RelevanceVerdict, estimate_prompt_tokens
from .citation import build_reference, cite_key, format_apa
from .ris import generate_ris, ris_entry, split_author_string
from .bibtex import bibtex_keys, generate_bibtex
from .composer import SynthesisComposer

__all__ = [
    "RelevanceScorer",
    "RelevanceVerdict",
    "estimate_prompt_tokens",
    "build_reference",
    "cite_key",
    "format_apa",
    "generate_ris",
    "ris_entry",
    "split_author_string",
    "bibtex_keys",
    "generate_bibtex",
    "SynthesisComposer",
]
