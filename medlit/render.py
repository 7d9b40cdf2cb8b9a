"""
Plain-text renderings of pipeline results for terminal output.
"""

from .common.schemas import AnswerResult, LinkResult, MeshRecord, Strategy, SynthesisResult


def render_markdown(result: SynthesisResult) -> str:
    """Markdown report: synthesis, numbered references and token estimate."""
    lines = [
        f"# {result.question}",
        "",
        f"*Searched {result.papers_searched} papers, scored {result.papers_scored}, "
        f"used {result.papers_used}*",
        "",
        "## Synthesis",
        "",
        result.synthesis,
        "",
        "## References",
        "",
    ]
    for ref in result.references:
        relevance = f" (relevance: {ref.relevance_score}/10)" if ref.relevance_score is not None else ""
        lines.append(f"{ref.rank}. {ref.citation_apa}{relevance} [PMID: {ref.pmid}]")
    lines.extend([
        "",
        "---",
        f"*Tokens: ~{result.tokens.input} in / ~{result.tokens.output} out / ~{result.tokens.total} total*",
    ])
    return "\n".join(lines) + "\n"


def render_answer(result: AnswerResult, explain: bool = False) -> str:
    """One-line answer, or a short explanation block with strategy and sources."""
    if not explain:
        return result.answer

    lines = [
        f"Answer: {result.answer.upper()}",
        f"   Strategy: {result.strategy.value}",
    ]
    if result.novel_detected:
        lines.append("   Novel knowledge detected: yes")
    if result.confidence > 0:
        lines.append(f"   Confidence: {result.confidence}/10")
    if result.source_pmids:
        lines.append(f"   Sources: {', '.join(result.source_pmids)}")
    if result.strategy == Strategy.RETRIEVAL and not result.source_pmids:
        lines.append("   No documents retrieved; answered without evidence")
    if result.minified_context and len(result.minified_context) < 500:
        context = result.minified_context.replace("\n", "\n   ")
        lines.extend(["", "   Context:", f"   {context}"])
    return "\n".join(lines)


def render_links(result: LinkResult, limit: int = 0) -> str:
    """One PMID per line, with the similarity score when NCBI supplies one."""
    links = result.links[:limit] if limit > 0 else result.links
    if not links:
        return f"No {result.link_name} links for PMID {result.source_id}"

    lines = [f"{result.link_name} for PMID {result.source_id} ({len(result.links)} total):"]
    for link in links:
        score = f" (score: {link.score})" if link.score is not None else ""
        lines.append(f"   {link.id}{score}")
    return "\n".join(lines)


def render_mesh(record: MeshRecord) -> str:
    lines = [f"{record.name} [{record.ui}]"]
    if record.tree_numbers:
        lines.append(f"   Tree numbers: {', '.join(record.tree_numbers)}")
    if record.entry_terms:
        lines.append(f"   Entry terms: {'; '.join(record.entry_terms)}")
    if record.scope_note:
        lines.extend(["", f"   {record.scope_note}"])
    return "\n".join(lines)
