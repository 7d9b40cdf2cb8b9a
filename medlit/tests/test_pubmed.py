"""Tests for the E-utilities client and the efetch XML parser."""

import json
import pytest
import httpx

from medlit.common.context import CallContext
from medlit.common.errors import (
    EUtilsError,
    InputValidationError,
    OperationCancelled,
    RateLimitError,
    TermNotFoundError,
)
from medlit.pubmed.client import EUtilsClient
from medlit.pubmed.parser import parse_articles, parse_links, parse_mesh_record

EFETCH_XML = """<?xml version="1.0" ?>
<PubmedArticleSet>
  <PubmedArticle>
    <MedlineCitation Status="MEDLINE">
      <PMID Version="1">38000001</PMID>
      <Article PubModel="Print">
        <Journal>
          <JournalIssue CitedMedium="Internet">
            <Volume>12</Volume>
            <Issue>3</Issue>
            <PubDate><Year>2024</Year><Month>Mar</Month></PubDate>
          </JournalIssue>
          <Title>The Lancet. Diabetes &amp; endocrinology</Title>
          <ISOAbbreviation>Lancet Diabetes Endocrinol</ISOAbbreviation>
        </Journal>
        <ArticleTitle>Metformin and <i>HbA1c</i> in adults</ArticleTitle>
        <Pagination><MedlinePgn>100-110</MedlinePgn></Pagination>
        <ELocationID EIdType="doi" ValidYN="Y">10.1000/eloc</ELocationID>
        <Abstract>
          <AbstractText Label="BACKGROUND">Diabetes is common.</AbstractText>
          <AbstractText Label="RESULTS">HbA1c fell by 1.1%.</AbstractText>
        </Abstract>
        <AuthorList CompleteYN="Y">
          <Author ValidYN="Y"><LastName>Smith</LastName><ForeName>Jane</ForeName><Initials>J</Initials></Author>
          <Author ValidYN="N"><LastName>Wrong</LastName><ForeName>Entry</ForeName></Author>
          <Author ValidYN="Y"><CollectiveName>DPP Research Group</CollectiveName></Author>
        </AuthorList>
        <Language>eng</Language>
      </Article>
    </MedlineCitation>
    <PubmedData>
      <ArticleIdList>
        <ArticleId IdType="pubmed">38000001</ArticleId>
        <ArticleId IdType="doi">10.1000/xyz</ArticleId>
        <ArticleId IdType="pmc">PMC1234567</ArticleId>
      </ArticleIdList>
    </PubmedData>
  </PubmedArticle>
  <PubmedArticle>
    <MedlineCitation>
      <PMID>38000002</PMID>
      <Article>
        <Journal>
          <JournalIssue>
            <PubDate><MedlineDate>2019 Nov-Dec</MedlineDate></PubDate>
          </JournalIssue>
          <Title>BMJ</Title>
        </Journal>
        <ArticleTitle>Unstructured</ArticleTitle>
        <ELocationID EIdType="doi">10.1000/only-eloc</ELocationID>
        <Abstract><AbstractText>Plain abstract.</AbstractText></Abstract>
      </Article>
    </MedlineCitation>
  </PubmedArticle>
</PubmedArticleSet>
"""


class TestParser:
    def test_structured_record(self):
        article = parse_articles(EFETCH_XML)[0]

        assert article.pmid == "38000001"
        assert article.title == "Metformin and HbA1c in adults"
        assert article.year == "2024"
        assert article.journal == "The Lancet. Diabetes & endocrinology"
        assert article.journal_abbrev == "Lancet Diabetes Endocrinol"
        assert article.volume == "12"
        assert article.issue == "3"
        assert article.pages == "100-110"
        assert article.language == "eng"
        assert article.doi == "10.1000/xyz"
        assert article.pmc_id == "PMC1234567"
        assert article.abstract == "BACKGROUND: Diabetes is common.\n\nRESULTS: HbA1c fell by 1.1%."
        assert [s.label for s in article.abstract_sections] == ["BACKGROUND", "RESULTS"]

    def test_authors(self):
        authors = parse_articles(EFETCH_XML)[0].authors

        assert len(authors) == 2
        assert authors[0].last_name == "Smith"
        assert authors[1].is_collective
        assert authors[1].full_name == "DPP Research Group"

    def test_medline_date_and_eloc_doi(self):
        article = parse_articles(EFETCH_XML)[1]

        assert article.year == "2019"
        assert article.doi == "10.1000/only-eloc"
        assert article.pmc_id is None
        assert article.abstract == "Plain abstract."
        assert article.authors == []

    def test_empty_set(self):
        assert parse_articles("<PubmedArticleSet></PubmedArticleSet>") == []

    def test_malformed(self):
        with pytest.raises(EUtilsError):
            parse_articles("<PubmedArticleSet>")


def _client(handler, **kwargs):
    return EUtilsClient(base_url="https://eutils.test/entrez/eutils", transport=httpx.MockTransport(handler), **kwargs)


class TestEUtilsClient:
    def test_search(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            body = {"esearchresult": {"count": "42", "idlist": ["1", "2", "3"]}}
            return httpx.Response(200, content=json.dumps(body))

        with _client(handler, email="me@example.org", api_key="k") as client:
            page = client.search("metformin HbA1c", limit=3)

        assert page.count == 42
        assert page.ids == ["1", "2", "3"]
        assert seen["url"].path.endswith("/esearch.fcgi")
        assert seen["url"].params["term"] == "metformin HbA1c"
        assert seen["url"].params["retmax"] == "3"
        assert seen["url"].params["email"] == "me@example.org"
        assert seen["url"].params["api_key"] == "k"
        assert seen["url"].params["tool"] == "medlit"

    def test_search_empty_query(self):
        with _client(lambda r: httpx.Response(200)) as client:
            with pytest.raises(InputValidationError):
                client.search("  ")

    def test_search_bad_json(self):
        with _client(lambda r: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(EUtilsError):
                client.search("q")

    def test_fetch(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, content=EFETCH_XML.encode())

        with _client(handler) as client:
            articles = client.fetch(["38000001", "38000002"])

        assert [a.pmid for a in articles] == ["38000001", "38000002"]
        assert seen["url"].params["id"] == "38000001,38000002"
        assert seen["url"].params["retmode"] == "xml"

    def test_fetch_requires_ids(self):
        with _client(lambda r: httpx.Response(200)) as client:
            with pytest.raises(InputValidationError, match="PMID"):
                client.fetch([])

    def test_rate_limited(self):
        with _client(lambda r: httpx.Response(429)) as client:
            with pytest.raises(RateLimitError):
                client.search("q")

    def test_http_error_status(self):
        with _client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(EUtilsError, match="503"):
                client.search("q")

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with _client(handler) as client:
            with pytest.raises(EUtilsError, match="request failed"):
                client.search("q")

    def test_cancelled_context_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        ctx = CallContext()
        ctx.cancel()
        with _client(handler) as client:
            with pytest.raises(OperationCancelled):
                client.search("q", ctx=ctx)
        assert calls == []

    def test_rate_interval_depends_on_key(self):
        assert _client(lambda r: httpx.Response(200))._interval == pytest.approx(1 / 3)
        assert _client(lambda r: httpx.Response(200), api_key="k")._interval == pytest.approx(1 / 10)


MESH_TEXT = """*NEWRECORD
RECTYPE = D
MH = Heart Failure
AN = do not use for congestive heart failure in animals
MS = A heterogeneous condition in which the heart is unable to pump out sufficient blood.
MN = C14.280.434
ENTRY = Cardiac Failure|T047|NON|EQV|NLM (1966)|801219|abbcdef
ENTRY = Heart Decompensation
UI = D006333
"""


class TestLinkParsing:
    def test_picks_requested_linkname(self):
        payload = {"linksets": [{"ids": ["1"], "linksetdbs": [
            {"dbto": "pubmed", "linkname": "pubmed_pubmed_refs", "links": ["9"]},
            {"dbto": "pubmed", "linkname": "pubmed_pubmed_citedin", "links": ["7", "8", ""]},
        ]}]}
        result = parse_links(payload, "1", "pubmed_pubmed_citedin")
        assert result.source_id == "1"
        assert [link.id for link in result.links] == ["7", "8"]
        assert all(link.score is None for link in result.links)

    def test_no_linksetdb_is_empty(self):
        result = parse_links({"linksets": [{"ids": ["1"]}]}, "1", "pubmed_pubmed_citedin")
        assert result.links == []

    def test_wrong_shape(self):
        with pytest.raises(EUtilsError, match="elink"):
            parse_links({"header": {}}, "1", "pubmed_pubmed")


class TestMeshParsing:
    def test_full_record(self):
        record = parse_mesh_record(MESH_TEXT)
        assert record.ui == "D006333"
        assert record.name == "Heart Failure"
        assert record.tree_numbers == ["C14.280.434"]
        assert record.entry_terms == ["Cardiac Failure", "Heart Decompensation"]
        assert record.scope_note.startswith("A heterogeneous condition")
        assert "animals" in record.annotation

    def test_empty_text(self):
        record = parse_mesh_record("")
        assert record.ui == ""
        assert record.tree_numbers == []


class TestLinks:
    def test_cited_by(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            body = {"linksets": [{"dbfrom": "pubmed", "ids": ["38000001"], "linksetdbs": [
                {"dbto": "pubmed", "linkname": "pubmed_pubmed_citedin", "links": ["39000001", "39000002"]},
            ]}]}
            return httpx.Response(200, content=json.dumps(body))

        with _client(handler) as client:
            result = client.cited_by("38000001")

        assert [link.id for link in result.links] == ["39000001", "39000002"]
        assert result.link_name == "pubmed_pubmed_citedin"
        assert seen["url"].path.endswith("/elink.fcgi")
        assert seen["url"].params["id"] == "38000001"
        assert seen["url"].params["linkname"] == "pubmed_pubmed_citedin"
        assert seen["url"].params["cmd"] == "neighbor"
        assert seen["url"].params["retmode"] == "json"

    def test_references_linkname(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, content=json.dumps({"linksets": [{"ids": ["1"]}]}))

        with _client(handler) as client:
            result = client.references("1")

        assert result.links == []
        assert seen["url"].params["linkname"] == "pubmed_pubmed_refs"

    def test_related_carries_scores(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            body = {"linksets": [{"ids": ["1"], "linksetdbs": [
                {"linkname": "pubmed_pubmed", "links": [{"id": "5", "score": "9001"}, {"id": "6", "score": 120}]},
            ]}]}
            return httpx.Response(200, content=json.dumps(body))

        with _client(handler) as client:
            result = client.related("1")

        assert [(link.id, link.score) for link in result.links] == [("5", 9001), ("6", 120)]
        assert seen["url"].params["cmd"] == "neighbor_score"

    def test_requires_pmid(self):
        calls = []
        with _client(lambda r: calls.append(r) or httpx.Response(200)) as client:
            with pytest.raises(InputValidationError, match="PMID"):
                client.cited_by(" ")
        assert calls == []

    def test_server_error(self):
        with _client(lambda r: httpx.Response(500)) as client:
            with pytest.raises(EUtilsError, match="500"):
                client.related("1")

    def test_bad_json(self):
        with _client(lambda r: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(EUtilsError, match="elink"):
                client.cited_by("1")


class TestMeshLookup:
    def test_search_then_fetch(self):
        seen = []

        def handler(request):
            seen.append(request.url)
            if request.url.path.endswith("/esearch.fcgi"):
                body = {"esearchresult": {"count": "1", "idlist": ["68006333"]}}
                return httpx.Response(200, content=json.dumps(body))
            return httpx.Response(200, text=MESH_TEXT)

        with _client(handler) as client:
            record = client.mesh_lookup("heart failure")

        assert record.ui == "D006333"
        assert record.name == "Heart Failure"
        assert len(seen) == 2
        assert seen[0].params["db"] == "mesh"
        assert seen[0].params["term"] == "heart failure"
        assert seen[1].params["db"] == "mesh"
        assert seen[1].params["id"] == "68006333"
        assert seen[1].params["rettype"] == "full"

    def test_unknown_term(self):
        def handler(request):
            return httpx.Response(200, content=json.dumps({"esearchresult": {"count": "0", "idlist": []}}))

        with _client(handler) as client:
            with pytest.raises(TermNotFoundError, match="zzzz"):
                client.mesh_lookup("zzzz")

    def test_requires_term(self):
        with _client(lambda r: httpx.Response(200)) as client:
            with pytest.raises(InputValidationError):
                client.mesh_lookup("")
