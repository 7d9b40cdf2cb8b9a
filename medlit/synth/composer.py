"""
Synthesis Composer

Literature synthesis from PubMed: search, fetch, score, filter, rank, compose
and cite. The single-paper deep dive reuses the fetch, cite and compose
stages on one caller-supplied PMID.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..common.config import SynthesisConfig
from ..common.context import CallContext, ensure_context, run_stage
from ..common.errors import (
    InputValidationError,
    MedlitError,
    NoDocumentsFoundError,
    NoRelevantDocumentsError,
    OperationCancelled,
)
from ..common.llm_client import Completer
from ..common.llm_utils import NEUTRAL_SCORE
from ..common.schemas import Article, Reference, SynthesisResult, TokenUsage
from ..pubmed.client import LiteratureSource
from .citation import build_reference, cite_key
from .relevance import RelevanceScorer, estimate_prompt_tokens
from .ris import generate_ris

logger = logging.getLogger("medlit.synth.composer")

SYNTHESIS_PROMPT = """You are a scientific writer. Synthesize the following research papers to answer the question.

Question: {question}

Papers:
{papers}

Write a synthesis of approximately {words} words that:
1. Directly addresses the question
2. Integrates findings across papers rather than summarizing each in turn
3. Uses inline citations like ({example}) drawn only from the available citations below
4. Maintains an academic tone
5. Notes any conflicting findings

Available citations: {citations}"""

DEEP_DIVE_PROMPT = """Summarize this research paper in approximately {words} words, covering:
1. Main objective/question
2. Key methods
3. Primary findings
4. Implications/conclusions

Title: {title}
Abstract: {abstract}

Write a cohesive summary paragraph. Cite as ({citation})."""


@dataclass
class _Scored:
    article: Article
    score: int


class SynthesisComposer:
    """
    Drives multi-document and single-document synthesis.

    Holds only its collaborators and configuration, so one instance can serve
    many calls.
    """

    def __init__(self, llm: Completer, source: LiteratureSource, config: Optional[SynthesisConfig] = None):
        if llm is None:
            raise InputValidationError("synthesis requires an LLM client")
        if source is None:
            raise InputValidationError("synthesis requires a literature source")
        self.config = config or SynthesisConfig()
        self.config.validate()
        self._llm = llm
        self._source = source
        self._scorer = RelevanceScorer(llm)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _score_all(self, question: str, articles: List[Article], ctx: CallContext, usage: TokenUsage) -> List[_Scored]:
        scored = []
        for article in articles:
            # Stop between documents once cancelled
            ctx.raise_if_done()
            prompt = self._scorer.build_prompt(question, article)
            usage.input += estimate_prompt_tokens(prompt)
            try:
                verdict = self._scorer.score_prompt(prompt, ctx)
            except OperationCancelled:
                raise
            except MedlitError as e:
                logger.warning("Relevance scoring failed for PMID %s, using %d: %s", article.pmid, NEUTRAL_SCORE, e)
                scored.append(_Scored(article, NEUTRAL_SCORE))
                continue

            usage.output += len(verdict.raw_response) // 4
            if not verdict.parsed:
                logger.warning(
                    "Unparseable relevance score for PMID %s, using %d: %r",
                    article.pmid, NEUTRAL_SCORE, verdict.raw_response[:80],
                )
                scored.append(_Scored(article, NEUTRAL_SCORE))
            else:
                scored.append(_Scored(article, verdict.score))
        return scored

    def _rank(self, scored: List[_Scored]) -> List[_Scored]:
        kept = [s for s in scored if s.score >= self.config.relevance_threshold]
        # sorted() is stable: ties keep scoring order
        kept = sorted(kept, key=lambda s: s.score, reverse=True)
        return kept[:self.config.papers_to_use]

    def _format_papers(self, references: List[Reference]) -> str:
        blocks = []
        for i, ref in enumerate(references, 1):
            blocks.append(
                f"[{i}] {cite_key(ref)} (PMID: {ref.pmid})\n"
                f"Title: {ref.title}\n"
                f"Abstract: {ref.abstract}"
            )
        return "\n---\n".join(blocks)

    def build_synthesis_prompt(self, question: str, references: List[Reference]) -> str:
        keys = [cite_key(r) for r in references]
        return SYNTHESIS_PROMPT.format(
            question=question,
            papers=self._format_papers(references),
            words=self.config.target_words,
            example=keys[0] if keys else "Smith et al., 2024",
            citations="; ".join(keys),
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def synthesize(self, question: str, ctx: Optional[CallContext] = None) -> SynthesisResult:
        """
        Multi-document synthesis for a research question.

        Args:
            question: Open-ended research question
            ctx: Cancellation/deadline signal

        Returns:
            SynthesisResult with ranked references and RIS export

        Raises:
            InputValidationError: empty question
            NoDocumentsFoundError: search returned nothing
            NoRelevantDocumentsError: nothing reached the relevance threshold
            UpstreamError: a collaborator failed (``stage`` names which)
            OperationCancelled: ctx was cancelled
        """
        question = (question or "").strip()
        if not question:
            raise InputValidationError("question is required")
        ctx = ensure_context(ctx)
        usage = TokenUsage()

        page = run_stage("search", ctx, self._source.search, question, self.config.search_breadth, ctx)
        if not page.ids:
            raise NoDocumentsFoundError(f"no papers found for: {question}")
        logger.info("Search returned %d ids (%d total hits)", len(page.ids), page.count)

        articles = run_stage("fetch", ctx, self._source.fetch, page.ids, ctx)

        scored = self._score_all(question, articles, ctx, usage)
        ranked = self._rank(scored)
        if not ranked:
            raise NoRelevantDocumentsError(
                f"no papers met relevance threshold {self.config.relevance_threshold} "
                f"({len(scored)} scored)"
            )

        references = [
            build_reference(s.article, rank, s.score)
            for rank, s in enumerate(ranked, 1)
        ]

        prompt = self.build_synthesis_prompt(question, references)
        text = run_stage("synthesis", ctx, self._llm.complete, prompt, self.config.target_words * 3, ctx)
        usage.add(prompt, text)

        return SynthesisResult(
            question=question,
            synthesis=text,
            papers_searched=len(page.ids),
            papers_scored=len(scored),
            papers_used=len(references),
            references=references,
            ris=generate_ris(references),
            tokens=usage,
        )

    def synthesize_single_document(self, pmid: str, ctx: Optional[CallContext] = None) -> SynthesisResult:
        """Deep-dive summary of one paper (objective, methods, findings, implications)."""
        pmid = (pmid or "").strip()
        if not pmid:
            raise InputValidationError("PMID is required")
        ctx = ensure_context(ctx)
        usage = TokenUsage()

        articles = run_stage("fetch", ctx, self._source.fetch, [pmid], ctx)
        if not articles:
            raise NoDocumentsFoundError(f"article not found: {pmid}")

        reference = build_reference(articles[0], 1)
        prompt = DEEP_DIVE_PROMPT.format(
            words=self.config.target_words,
            title=reference.title,
            abstract=reference.abstract,
            citation=cite_key(reference),
        )
        text = run_stage("synthesis", ctx, self._llm.complete, prompt, self.config.target_words * 2, ctx)
        usage.add(prompt, text)

        return SynthesisResult(
            question=f"Deep dive: PMID {pmid}",
            synthesis=text,
            papers_searched=1,
            papers_scored=0,
            papers_used=1,
            references=[reference],
            ris=generate_ris([reference]),
            tokens=usage,
        )
