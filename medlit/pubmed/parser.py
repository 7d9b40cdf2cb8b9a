"""
PubMed response parsers

Converts efetch XML into Article records, ELink JSON into LinkResults and
MeSH full-text records into MeshRecords.
"""

from __future__ import annotations

import re
import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from ..common.errors import EUtilsError
from ..common.schemas import AbstractSection, Article, Author, Link, LinkResult, MeshRecord

logger = logging.getLogger("medlit.pubmed.parser")

_YEAR_RE = re.compile(r"\d{4}")


def _inner_text(node: Optional[ET.Element]) -> str:
    """Text content with inline markup (<i>, <sup>, ...) flattened."""
    if node is None:
        return ""
    return " ".join("".join(node.itertext()).split())


def _read_text(node: ET.Element, path: str) -> str:
    found = node.find(path)
    if found is None or found.text is None:
        return ""
    return found.text.strip()


def _parse_authors(article: ET.Element) -> List[Author]:
    authors = []
    for node in article.findall("AuthorList/Author"):
        if node.attrib.get("ValidYN", "Y").upper() == "N":
            continue
        author = Author(
            last_name=_read_text(node, "LastName"),
            fore_name=_read_text(node, "ForeName"),
            initials=_read_text(node, "Initials"),
            collective_name=_inner_text(node.find("CollectiveName")),
        )
        if author.full_name:
            authors.append(author)
    return authors


def _parse_year(issue: Optional[ET.Element]) -> str:
    if issue is None:
        return ""
    year = _read_text(issue, "PubDate/Year")
    if year:
        return year
    match = _YEAR_RE.search(_read_text(issue, "PubDate/MedlineDate"))
    return match.group(0) if match else ""


def _parse_article(node: ET.Element) -> Article:
    citation = node.find("MedlineCitation")
    if citation is None:
        citation = ET.Element("MedlineCitation")
    article = citation.find("Article")
    if article is None:
        article = ET.Element("Article")
    issue = article.find("Journal/JournalIssue")

    sections = []
    for text_node in article.findall("Abstract/AbstractText"):
        sections.append(AbstractSection(
            label=text_node.attrib.get("Label", ""),
            text=_inner_text(text_node),
        ))
    abstract = "\n\n".join(
        f"{s.label}: {s.text}" if s.label else s.text
        for s in sections
    )

    doi = ""
    pmc_id = None
    for id_node in node.findall("PubmedData/ArticleIdList/ArticleId"):
        id_type = id_node.attrib.get("IdType", "")
        value = (id_node.text or "").strip()
        if id_type == "doi" and not doi:
            doi = value
        elif id_type == "pmc" and pmc_id is None:
            pmc_id = value
    if not doi:
        # Older records carry the DOI only on the article itself
        for eloc in article.findall("ELocationID"):
            if eloc.attrib.get("EIdType") == "doi":
                doi = (eloc.text or "").strip()
                break

    return Article(
        pmid=_read_text(citation, "PMID"),
        title=_inner_text(article.find("ArticleTitle")),
        abstract=abstract,
        abstract_sections=sections,
        authors=_parse_authors(article),
        year=_parse_year(issue),
        journal=_read_text(article, "Journal/Title"),
        journal_abbrev=_read_text(article, "Journal/ISOAbbreviation"),
        volume=_read_text(issue, "Volume") if issue is not None else "",
        issue=_read_text(issue, "Issue") if issue is not None else "",
        pages=_read_text(article, "Pagination/MedlinePgn"),
        language=_read_text(article, "Language"),
        doi=doi,
        pmc_id=pmc_id,
    )


def parse_articles(xml_text: str | bytes) -> List[Article]:
    """Parse an efetch response into Articles, in document order.

    Raises:
        EUtilsError: if the payload is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise EUtilsError(f"parsing PubMed XML: {e}") from e

    articles = [_parse_article(node) for node in root.findall("PubmedArticle")]
    logger.debug("Parsed %d articles", len(articles))
    return articles


def _parse_link(item) -> Link:
    # Plain neighbour lists are bare ids; neighbor_score lists carry {"id", "score"}
    if isinstance(item, dict):
        score = item.get("score")
        return Link(id=str(item.get("id", "")), score=int(score) if score not in (None, "") else None)
    return Link(id=str(item))


def parse_links(payload: dict, source_id: str, link_name: str) -> LinkResult:
    """Pick the ``link_name`` neighbour list out of an ELink JSON response.

    A record with no neighbours comes back without a matching linksetdb;
    that is an empty result, not an error.

    Raises:
        EUtilsError: if the payload does not have the ELink shape
    """
    try:
        linksets = payload["linksets"]
        links = []
        for linkset in linksets:
            for linksetdb in linkset.get("linksetdbs", []):
                if linksetdb.get("linkname") == link_name:
                    links.extend(_parse_link(item) for item in linksetdb.get("links", []))
    except (KeyError, TypeError, ValueError) as e:
        raise EUtilsError(f"parsing elink response: {e}") from e

    return LinkResult(source_id=source_id, link_name=link_name, links=[link for link in links if link.id])


def parse_mesh_record(text: str) -> MeshRecord:
    """Parse a MeSH descriptor in the ``KEY = value`` full-record format."""
    record = MeshRecord()
    for line in (text or "").splitlines():
        line = line.strip()
        if not line or line == "*NEWRECORD":
            continue
        key, sep, value = line.partition(" = ")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key == "MH":
            record.name = value
        elif key == "UI":
            record.ui = value
        elif key == "MS":
            record.scope_note = value
        elif key == "MN":
            record.tree_numbers.append(value)
        elif key == "AN":
            record.annotation = value
        elif key == "ENTRY":
            # "Term|T047|NON|EQV|..." keeps only the term
            record.entry_terms.append(value.split("|", 1)[0].strip())
    return record
