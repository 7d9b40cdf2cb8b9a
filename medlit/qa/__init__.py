"""
QA Agent - Adaptive Retrieval for Biomedical Yes/No Questions

Decides per question whether to trust the model or retrieve PubMed evidence.

Key Components:
- NoveltyDetector: Spots questions about recent work
- QueryExpander: Rewrites questions into search queries
- AbstractMinifier: Compresses abstracts into an evidence budget
- RetrievalOrchestrator: Confidence-gated decision and answer

Pipeline:
1. Detect novelty; otherwise ask the model for its confidence
2. Retrieve (search, fetch, minify) when novel or unconfident
3. Answer from evidence, or parametrically
"""

from .novelty import NoveltyDetector, NoveltyResult, detect_novelty
from .query_expander import QueryExpander, expand_query
from .minifier import AbstractMinifier, minify_abstract
from .orchestrator import RetrievalOrchestrator

__all__ = [
    "NoveltyDetector",
    "NoveltyResult",
    "detect_novelty",
    "QueryExpander",
    "expand_query",
    "AbstractMinifier",
    "minify_abstract",
    "RetrievalOrchestrator",
]
