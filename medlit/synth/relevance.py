"""
Relevance Scorer: LLM judgment of one paper against a research question.

Each call sends the question, the title and a 500-character abstract excerpt
and asks for a single 1-10 rating. Token cost is a character-based estimate
(~len/4 + 5), good for display only.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.context import CallContext, ensure_context, run_stage
from ..common.errors import InputValidationError
from ..common.llm_client import Completer
from ..common.llm_utils import parse_score
from ..common.schemas import Article

logger = logging.getLogger("medlit.synth.relevance")

ABSTRACT_EXCERPT_CHARS = 500
MAX_RESPONSE_TOKENS = 10

RELEVANCE_PROMPT = """Rate how relevant this paper is to the research question.

Question: {question}

Paper Title: {title}
Abstract: {abstract}

Rate relevance from 1-10 where:
1-3 = Not relevant (different topic, population, or scope)
4-6 = Somewhat relevant (related but not directly addressing the question)
7-9 = Highly relevant (directly addresses the question)
10 = Perfect match (exactly what the question asks about)

Respond with only the number (1-10):"""


@dataclass
class RelevanceVerdict:
    """Result of scoring one paper."""
    score: Optional[int]  # None when the response held no 1-10 integer
    tokens: int
    raw_response: str = ""

    @property
    def parsed(self) -> bool:
        return self.score is not None


def estimate_prompt_tokens(prompt: str) -> int:
    return len(prompt) // 4 + 5


class RelevanceScorer:
    """Asks the generative collaborator to rate a paper's relevance."""

    def __init__(self, llm: Completer):
        if llm is None:
            raise InputValidationError("relevance scorer requires an LLM client")
        self._llm = llm

    def build_prompt(self, question: str, article: Article) -> str:
        return RELEVANCE_PROMPT.format(
            question=question,
            title=article.title,
            abstract=(article.abstract or "")[:ABSTRACT_EXCERPT_CHARS],
        )

    def score(self, question: str, article: Article, ctx: Optional[CallContext] = None) -> RelevanceVerdict:
        """
        Score one article.

        Args:
            question: Research question
            article: Candidate article
            ctx: Cancellation/deadline signal

        Returns:
            RelevanceVerdict; ``score`` is None when the reply could not be parsed

        Raises:
            InputValidationError: article missing
            UpstreamError: the LLM call failed
            OperationCancelled: ctx was cancelled
        """
        if article is None:
            raise InputValidationError("article is required")
        verdict = self.score_prompt(self.build_prompt(question, article), ctx)
        logger.debug("PMID %s relevance %s", article.pmid, verdict.score)
        return verdict

    def score_prompt(self, prompt: str, ctx: Optional[CallContext] = None) -> RelevanceVerdict:
        """Send an already-built relevance prompt and parse the rating."""
        ctx = ensure_context(ctx)
        raw = run_stage("relevance", ctx, self._llm.complete, prompt, MAX_RESPONSE_TOKENS, ctx)
        return RelevanceVerdict(score=parse_score(raw), tokens=estimate_prompt_tokens(prompt), raw_response=raw)
