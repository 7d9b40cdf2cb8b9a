"""
medlit command line

Usage:
    medlit qa "Does metformin reduce HbA1c?" [--explain] [--retrieve | --parametric]
    medlit synth "SGLT-2 inhibitors in liver fibrosis" [--papers 5] [--ris refs.ris]
    medlit synth --pmid 41234567 --words 400
    medlit links 38000001 --kind cited-by
    medlit mesh "heart failure"
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .common.config import load_config
from .common.context import CallContext
from .common.errors import (
    InputValidationError,
    MedlitError,
    OperationCancelled,
    PolicyError,
    UpstreamError,
)
from .common.llm_client import LLMClient, create_llm_client
from .common.sanitize import SecurityConfig, sanitize_prompt
from .pubmed.client import create_eutils_client
from .qa.orchestrator import RetrievalOrchestrator
from .render import render_answer, render_links, render_markdown, render_mesh
from .synth.composer import SynthesisComposer

logger = logging.getLogger("medlit.cli")

# API transports never reach a shell, so metacharacters like "&" are fine in questions
QUESTION_SECURITY = SecurityConfig(allow_shell_metachars=True)

LINK_KINDS = {
    "cited-by": "cited_by",
    "references": "references",
    "related": "related",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="medlit", description="Biomedical QA and literature synthesis over PubMed.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")
    sub = parser.add_subparsers(dest="command", required=True)

    qa = sub.add_parser("qa", help="Answer a biomedical yes/no question with adaptive retrieval")
    qa.add_argument("question", nargs="+")
    qa.add_argument("--confidence", type=int, default=None, help="Confidence threshold for parametric answers (1-10)")
    mode = qa.add_mutually_exclusive_group()
    mode.add_argument("--retrieve", action="store_true", help="Force retrieval (skip confidence check)")
    mode.add_argument("--parametric", action="store_true", help="Force parametric (never retrieve)")
    qa.add_argument("--explain", "-e", action="store_true", help="Show strategy, confidence and sources")

    synth = sub.add_parser("synth", help="Synthesize literature on a topic with citations")
    synth.add_argument("question", nargs="*")
    synth.add_argument("--pmid", default="", help="Deep dive on a single paper")
    synth.add_argument("--papers", type=int, default=None, help="Papers to include")
    synth.add_argument("--search", type=int, default=None, help="Papers to search before filtering")
    synth.add_argument("--relevance", type=int, default=None, help="Minimum relevance score (1-10)")
    synth.add_argument("--words", type=int, default=None, help="Target word count")
    synth.add_argument("--ris", default="", help="Write RIS file")
    synth.add_argument("--bibtex", default="", help="Write BibTeX file")

    links = sub.add_parser("links", help="List citing, cited or similar PubMed records")
    links.add_argument("pmid")
    links.add_argument("--kind", choices=sorted(LINK_KINDS), default="cited-by")
    links.add_argument("--limit", type=int, default=20, help="Records to show (0 for all)")

    mesh = sub.add_parser("mesh", help="Look up a MeSH descriptor")
    mesh.add_argument("term", nargs="+")
    return parser


def _write(path: str, text: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text)


def _llm_client(config) -> LLMClient:
    llm = create_llm_client(config.llm)
    if not llm.is_available:
        raise InputValidationError(f"no API key configured for provider {config.llm.provider}")
    return llm


def _run_qa(args, config, ctx: CallContext) -> str:
    question = sanitize_prompt(" ".join(args.question), QUESTION_SECURITY)

    if args.confidence is not None:
        config.qa.confidence_threshold = args.confidence
    config.qa.force_retrieval = args.retrieve
    config.qa.force_parametric = args.parametric
    llm = _llm_client(config)

    with create_eutils_client(config.pubmed) as source:
        engine = RetrievalOrchestrator(llm, source, config.qa)
        result = engine.answer(question, ctx)

    if args.json:
        return json.dumps(result.model_dump(mode="json"), indent=2)
    return render_answer(result, explain=args.explain)


def _run_synth(args, config, ctx: CallContext) -> str:
    pmid = args.pmid.strip()
    if not pmid and not args.question:
        raise InputValidationError("provide a question or use --pmid for a single paper")
    if pmid and args.question:
        raise InputValidationError("provide either a question or --pmid, not both")

    synth_cfg = config.synthesis
    if args.papers is not None:
        synth_cfg.papers_to_use = args.papers
    if args.search is not None:
        synth_cfg.papers_to_search = args.search
    if args.relevance is not None:
        synth_cfg.relevance_threshold = args.relevance
    if args.words is not None:
        synth_cfg.target_words = args.words
    llm = _llm_client(config)

    with create_eutils_client(config.pubmed) as source:
        composer = SynthesisComposer(llm, source, synth_cfg)
        if pmid:
            result = composer.synthesize_single_document(pmid, ctx)
        else:
            question = sanitize_prompt(" ".join(args.question), QUESTION_SECURITY)
            result = composer.synthesize(question, ctx)

    if args.ris:
        _write(args.ris, result.ris)
        print(f"Wrote {args.ris} ({len(result.references)} references)", file=sys.stderr)
    if args.bibtex:
        _write(args.bibtex, result.bibtex())
        print(f"Wrote {args.bibtex} ({len(result.references)} references)", file=sys.stderr)

    if args.json:
        return json.dumps(result.model_dump(mode="json"), indent=2)
    return render_markdown(result)


def _run_links(args, config, ctx: CallContext) -> str:
    with create_eutils_client(config.pubmed) as source:
        result = getattr(source, LINK_KINDS[args.kind])(args.pmid, ctx)

    if args.json:
        return json.dumps(result.model_dump(mode="json"), indent=2)
    return render_links(result, limit=args.limit)


def _run_mesh(args, config, ctx: CallContext) -> str:
    with create_eutils_client(config.pubmed) as source:
        record = source.mesh_lookup(" ".join(args.term), ctx)

    if args.json:
        return json.dumps(record.model_dump(mode="json"), indent=2)
    return render_mesh(record)


COMMANDS = {
    "qa": _run_qa,
    "synth": _run_synth,
    "links": _run_links,
    "mesh": _run_mesh,
}


def _describe(error: MedlitError) -> str:
    if isinstance(error, InputValidationError):
        return f"invalid input: {error}"
    if isinstance(error, PolicyError):
        return f"nothing found: {error}"
    if isinstance(error, UpstreamError):
        return f"upstream failure during {error.stage}: {error.cause}"
    if isinstance(error, OperationCancelled):
        return f"cancelled: {error}"
    return str(error)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = load_config()
    ctx = CallContext.with_timeout(args.timeout)
    try:
        output = COMMANDS[args.command](args, config, ctx)
    except MedlitError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"medlit: {_describe(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        ctx.cancel()
        print("medlit: cancelled", file=sys.stderr)
        return 130

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
