"""Tests for RIS export."""

from medlit.common.schemas import Reference
from medlit.synth.ris import MAX_ABSTRACT_CHARS, generate_ris, ris_entry, sanitize_ris, split_author_string


def _ref(**overrides):
    data = dict(
        key="Smith 2024", rank=1, pmid="12345", title="A trial",
        journal="BMJ", year="2024", doi="10.1/x", abstract="Some abstract.",
        authors="Jane Smith et al.", author_names=["Smith, Jane", "Doe, John"],
    )
    data.update(overrides)
    return Reference(**data)


class TestSplitAuthorString:
    def test_empty(self):
        assert split_author_string("") == []

    def test_et_al(self):
        assert split_author_string("Jane Smith et al.") == ["Jane Smith"]

    def test_pair(self):
        assert split_author_string("Jane Smith & John Doe") == ["Jane Smith", "John Doe"]

    def test_semicolons(self):
        assert split_author_string("Smith J; Doe J") == ["Smith J", "Doe J"]

    def test_single(self):
        assert split_author_string("Jane Smith") == ["Jane Smith"]


class TestRisEntry:
    def test_structure(self):
        lines = ris_entry(_ref()).split("\n")

        assert lines[0] == "TY  - JOUR"
        assert lines[-1] == "ER  -"
        assert "AU  - Smith, Jane" in lines
        assert "AU  - Doe, John" in lines
        assert "AN  - 12345" in lines
        assert "DB  - PubMed" in lines
        assert "UR  - https://pubmed.ncbi.nlm.nih.gov/12345/" in lines

    def test_values_are_single_line(self):
        entry = ris_entry(_ref(title="Line one\nline two", abstract="a\r\n\tb"))
        assert "TI  - Line one line two" in entry.split("\n")
        assert "AB  - a b" in entry.split("\n")

    def test_falls_back_to_collapsed_authors(self):
        entry = ris_entry(_ref(author_names=[], authors="Jane Smith & John Doe"))
        assert "AU  - Jane Smith\nAU  - John Doe" in entry

    def test_unknown_author(self):
        entry = ris_entry(_ref(author_names=[], authors=""))
        assert "AU  - Unknown" in entry

    def test_empty_fields_omitted(self):
        entry = ris_entry(_ref(doi="", journal=""))
        assert "DO  -" not in entry
        assert "JO  -" not in entry

    def test_abstract_truncated(self):
        entry = ris_entry(_ref(abstract="x" * (MAX_ABSTRACT_CHARS + 100)))
        ab_line = [l for l in entry.split("\n") if l.startswith("AB  - ")][0]
        assert len(ab_line) == len("AB  - ") + MAX_ABSTRACT_CHARS

    def test_reference_property(self):
        ref = _ref()
        assert ref.ris == ris_entry(ref)


class TestGenerateRis:
    def test_empty(self):
        assert generate_ris([]) == ""

    def test_batch(self):
        text = generate_ris([_ref(), _ref(pmid="999")])
        assert text.count("TY  - JOUR") == 2
        assert text.count("ER  -") == 2
        assert text.endswith("ER  -\n")
        assert "ER  -\n\nTY  - JOUR" in text

    def test_sanitize_ris(self):
        assert sanitize_ris("  a\n\n b\t c ") == "a b c"
