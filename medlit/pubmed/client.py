"""
NCBI E-utilities client

Thin synchronous wrapper over esearch/efetch/elink with client-side rate
limiting, plus MeSH descriptor lookup.
NCBI allows 3 requests/second without an API key and 10 with one.
"""

import time
import logging
import threading
from typing import List, Optional, Protocol

import httpx

from ..common.config import DEFAULT_EUTILS_URL, PubMedConfig
from ..common.context import CallContext, ensure_context
from ..common.errors import EUtilsError, InputValidationError, RateLimitError, TermNotFoundError
from ..common.schemas import Article, LinkResult, MeshRecord, SearchPage
from .parser import parse_articles, parse_links, parse_mesh_record

logger = logging.getLogger("medlit.pubmed.client")

RATE_WITHOUT_KEY = 3
RATE_WITH_KEY = 10

LINK_CITED_BY = "pubmed_pubmed_citedin"
LINK_REFERENCES = "pubmed_pubmed_refs"
LINK_RELATED = "pubmed_pubmed"


class LiteratureSource(Protocol):
    """Search/fetch collaborator used by the pipelines."""

    def search(self, query: str, limit: int, ctx: Optional[CallContext] = None) -> SearchPage:
        ...

    def fetch(self, ids: List[str], ctx: Optional[CallContext] = None) -> List[Article]:
        ...


class EUtilsClient:
    """
    PubMed search and fetch over HTTP.

    Args:
        base_url: E-utilities root
        api_key: NCBI API key (raises the rate limit)
        tool: Tool name reported to NCBI
        email: Contact address reported to NCBI
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_EUTILS_URL,
        api_key: str = "",
        tool: str = "medlit",
        email: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.tool = tool
        self.email = email
        self.timeout = timeout
        self._interval = 1.0 / (RATE_WITH_KEY if api_key else RATE_WITHOUT_KEY)
        self._lock = threading.Lock()
        self._last_request = 0.0

        kwargs = {"timeout": httpx.Timeout(timeout)}
        if transport is not None:
            kwargs["transport"] = transport
        self._http = httpx.Client(**kwargs)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _wait_for_slot(self) -> None:
        with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self._interval:
                time.sleep(self._interval - elapsed)
            self._last_request = time.monotonic()

    def _get(self, endpoint: str, params: dict, ctx: CallContext) -> httpx.Response:
        ctx.raise_if_done()
        params = dict(params)
        if self.tool:
            params["tool"] = self.tool
        if self.email:
            params["email"] = self.email
        if self.api_key:
            params["api_key"] = self.api_key

        self._wait_for_slot()
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self._http.get(url, params=params, timeout=ctx.remaining(default=self.timeout))
        except httpx.HTTPError as e:
            raise EUtilsError(f"{endpoint} request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("NCBI rate limit exceeded (HTTP 429); set NCBI_API_KEY for a higher limit")
        if response.status_code != 200:
            raise EUtilsError(f"NCBI returned HTTP {response.status_code}")
        ctx.raise_if_done()
        return response

    def _esearch(self, db: str, term: str, limit: int, ctx: CallContext) -> SearchPage:
        params = {
            "db": db,
            "term": term,
            "retmax": str(limit),
            "retmode": "json",
        }
        response = self._get("esearch.fcgi", params, ctx)
        try:
            result = response.json()["esearchresult"]
            return SearchPage(
                count=int(result.get("count", 0)),
                ids=list(result.get("idlist", [])),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise EUtilsError(f"parsing esearch response: {e}") from e

    def search(self, query: str, limit: int = 20, ctx: Optional[CallContext] = None) -> SearchPage:
        """Run esearch and return total hit count plus ordered PMIDs."""
        if not query or not query.strip():
            raise InputValidationError("search query is required")
        ctx = ensure_context(ctx)
        page = self._esearch("pubmed", query, limit, ctx)
        logger.debug("esearch %r -> %d hits, %d ids", query, page.count, len(page.ids))
        return page

    def fetch(self, ids: List[str], ctx: Optional[CallContext] = None) -> List[Article]:
        """Run efetch for the given PMIDs and parse the XML records."""
        if not ids:
            raise InputValidationError("at least one PMID is required")
        ctx = ensure_context(ctx)
        params = {
            "db": "pubmed",
            "id": ",".join(ids),
            "rettype": "xml",
            "retmode": "xml",
        }
        response = self._get("efetch.fcgi", params, ctx)
        return parse_articles(response.content)

    # ------------------------------------------------------------------
    # ELink
    # ------------------------------------------------------------------

    def _link(self, pmid: str, link_name: str, ctx: Optional[CallContext], cmd: str = "neighbor") -> LinkResult:
        pmid = (pmid or "").strip()
        if not pmid:
            raise InputValidationError("PMID is required")
        ctx = ensure_context(ctx)
        params = {
            "dbfrom": "pubmed",
            "db": "pubmed",
            "id": pmid,
            "linkname": link_name,
            "cmd": cmd,
            "retmode": "json",
        }
        response = self._get("elink.fcgi", params, ctx)
        try:
            payload = response.json()
        except ValueError as e:
            raise EUtilsError(f"parsing elink response: {e}") from e

        result = parse_links(payload, pmid, link_name)
        logger.debug("elink %s %s -> %d links", link_name, pmid, len(result.links))
        return result

    def cited_by(self, pmid: str, ctx: Optional[CallContext] = None) -> LinkResult:
        """PubMed records that cite ``pmid``."""
        return self._link(pmid, LINK_CITED_BY, ctx)

    def references(self, pmid: str, ctx: Optional[CallContext] = None) -> LinkResult:
        """PubMed records cited by ``pmid``."""
        return self._link(pmid, LINK_REFERENCES, ctx)

    def related(self, pmid: str, ctx: Optional[CallContext] = None) -> LinkResult:
        """Similar articles, best first, with NCBI's neighbour scores."""
        return self._link(pmid, LINK_RELATED, ctx, cmd="neighbor_score")

    # ------------------------------------------------------------------
    # MeSH
    # ------------------------------------------------------------------

    def mesh_lookup(self, term: str, ctx: Optional[CallContext] = None) -> MeshRecord:
        """
        Look up the MeSH descriptor that best matches ``term``.

        Raises:
            InputValidationError: empty term
            TermNotFoundError: the MeSH database has no match
        """
        term = (term or "").strip()
        if not term:
            raise InputValidationError("MeSH term is required")
        ctx = ensure_context(ctx)

        page = self._esearch("mesh", term, 1, ctx)
        if not page.ids:
            raise TermNotFoundError(f"MeSH term {term!r} not found")

        params = {
            "db": "mesh",
            "id": page.ids[0],
            "rettype": "full",
            "retmode": "text",
        }
        response = self._get("efetch.fcgi", params, ctx)
        return parse_mesh_record(response.text)


def create_eutils_client(config: PubMedConfig) -> EUtilsClient:
    return EUtilsClient(
        base_url=config.base_url,
        api_key=config.api_key,
        tool=config.tool,
        email=config.email,
        timeout=config.timeout,
    )
