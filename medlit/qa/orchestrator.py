"""
Retrieval Orchestrator

Adaptive retrieval for biomedical yes/no questions: trust the model's own
knowledge when it is confident and the question is not about recent work,
otherwise retrieve PubMed evidence and answer from it.

Decision order:
1. force_parametric  -> Parametric
2. force_retrieval   -> Retrieval
3. novelty detected  -> Retrieval (recency beats confidence)
4. confidence >= threshold -> Parametric (tentative answer reused), else Retrieval
"""

import logging
from typing import List, Optional, Tuple

from ..common.config import QAConfig
from ..common.context import CallContext, ensure_context, run_stage
from ..common.errors import InputValidationError
from ..common.llm_client import Completer
from ..common.llm_utils import NEUTRAL_SCORE, extract_field, parse_answer, parse_score
from ..common.schemas import AnswerResult, Article, Strategy
from ..pubmed.client import LiteratureSource
from .minifier import minify_abstract
from .novelty import detect_novelty
from .query_expander import expand_query

logger = logging.getLogger("medlit.qa.orchestrator")

CONFIDENCE_MAX_TOKENS = 50
ANSWER_MAX_TOKENS = 50

CONFIDENCE_PROMPT = """You are a biomedical expert. Consider the following yes/no question.

Question: {question}

Rate how confident you are (1-10) that you can answer it correctly from your own knowledge, where 1 = guessing and 10 = certain, and give your answer.

Respond in exactly this format:
CONFIDENCE: <1-10>
ANSWER: <yes or no>"""

PARAMETRIC_PROMPT = """You are a biomedical expert. Answer the following question with yes or no.

Question: {question}

Respond in exactly this format:
ANSWER: <yes or no>"""

EVIDENCE_PROMPT = """You are a biomedical expert. Answer the following question with yes or no, based on the research evidence below.

Evidence:
{evidence}

Question: {question}

Base your answer on the evidence. Respond in exactly this format:
ANSWER: <yes or no>"""


class RetrievalOrchestrator:
    """
    Confidence-gated QA engine.

    Holds only its two collaborators and a validated config; safe to reuse
    across calls.
    """

    def __init__(self, llm: Completer, source: LiteratureSource, config: Optional[QAConfig] = None):
        if llm is None:
            raise InputValidationError("QA requires an LLM client")
        if source is None:
            raise InputValidationError("QA requires a literature source")
        self.config = config or QAConfig()
        self.config.validate()
        self._llm = llm
        self._source = source

    # ------------------------------------------------------------------
    # Generative calls
    # ------------------------------------------------------------------

    def _check_confidence(self, question: str, ctx: CallContext) -> Tuple[int, str]:
        """Ask for self-rated confidence plus a tentative answer."""
        raw = run_stage(
            "confidence", ctx, self._llm.complete,
            CONFIDENCE_PROMPT.format(question=question), CONFIDENCE_MAX_TOKENS, ctx,
        )
        confidence = parse_score(extract_field(raw, "CONFIDENCE") or "")
        if confidence is None:
            logger.warning("Unparseable confidence response, using %d: %r", NEUTRAL_SCORE, raw[:80])
            confidence = NEUTRAL_SCORE
        return confidence, extract_field(raw, "ANSWER") or ""

    def _answer_parametric(self, question: str, ctx: CallContext) -> str:
        raw = run_stage(
            "answer", ctx, self._llm.complete,
            PARAMETRIC_PROMPT.format(question=question), ANSWER_MAX_TOKENS, ctx,
        )
        return parse_answer(raw)

    def _answer_with_evidence(self, question: str, evidence: str, ctx: CallContext) -> str:
        raw = run_stage(
            "answer", ctx, self._llm.complete,
            EVIDENCE_PROMPT.format(question=question, evidence=evidence), ANSWER_MAX_TOKENS, ctx,
        )
        return parse_answer(raw)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def build_evidence(self, articles: List[Article]) -> Tuple[str, List[str]]:
        """Minify each abstract into an equal share of the evidence budget.

        Returns:
            (evidence text, PMIDs of the articles that contributed)
        """
        if not articles:
            return "", []
        per_doc = max(1, self.config.evidence_budget // len(articles))

        blocks = []
        sources = []
        for article in articles:
            summary = minify_abstract(article.abstract, per_doc)
            if not summary and not article.title:
                continue
            header = f"[PMID {article.pmid}] {article.title}".rstrip()
            blocks.append(f"{header}\n{summary}" if summary else header)
            sources.append(article.pmid)
        return "\n\n".join(blocks), sources

    def _retrieve(self, question: str, ctx: CallContext) -> Tuple[str, List[str], str]:
        """Search, fetch and answer from evidence.

        Returns:
            (answer, source PMIDs, evidence text); falls back to a parametric
            answer with no sources when nothing is retrieved
        """
        query = expand_query(question) or question
        page = run_stage("search", ctx, self._source.search, query, self.config.max_results, ctx)
        ids = page.ids[:self.config.max_results]
        if not ids:
            logger.info("No documents for %r, answering without evidence", query)
            return self._answer_parametric(question, ctx), [], ""

        articles = run_stage("fetch", ctx, self._source.fetch, ids, ctx)
        evidence, sources = self.build_evidence(articles[:self.config.max_results])
        if not evidence:
            logger.info("Fetched documents carried no usable text, answering without evidence")
            return self._answer_parametric(question, ctx), [], ""

        return self._answer_with_evidence(question, evidence, ctx), sources, evidence

    # ------------------------------------------------------------------
    # Public operation
    # ------------------------------------------------------------------

    def answer(self, question: str, ctx: Optional[CallContext] = None) -> AnswerResult:
        """
        Answer a biomedical yes/no question.

        Args:
            question: The question text
            ctx: Cancellation/deadline signal

        Returns:
            AnswerResult with strategy, confidence (0 if never asked) and sources

        Raises:
            InputValidationError: empty question
            UpstreamError: a collaborator failed (``stage`` names which)
            OperationCancelled: ctx was cancelled
        """
        question = (question or "").strip()
        if not question:
            raise InputValidationError("question is required")
        ctx = ensure_context(ctx)

        novel = detect_novelty(question)
        confidence = 0
        tentative = ""

        if self.config.force_parametric:
            strategy = Strategy.PARAMETRIC
        elif self.config.force_retrieval or novel:
            strategy = Strategy.RETRIEVAL
        else:
            confidence, tentative = self._check_confidence(question, ctx)
            if confidence >= self.config.confidence_threshold:
                strategy = Strategy.PARAMETRIC
            else:
                strategy = Strategy.RETRIEVAL
        logger.debug("Strategy %s (novel=%s, confidence=%d)", strategy.value, novel, confidence)

        sources: List[str] = []
        evidence = ""
        if strategy == Strategy.PARAMETRIC:
            answer = tentative or self._answer_parametric(question, ctx)
        else:
            answer, sources, evidence = self._retrieve(question, ctx)

        return AnswerResult(
            question=question,
            answer=answer,
            confidence=confidence,
            strategy=strategy,
            novel_detected=novel,
            source_pmids=sources,
            minified_context=evidence,
        )
