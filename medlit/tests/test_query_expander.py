"""Tests for question-to-search-query rewriting."""

import pytest

from medlit.qa.query_expander import MAX_QUERY_LENGTH, QueryExpander, expand_query


class TestExpandQuery:
    @pytest.mark.parametrize("question,expected", [
        ("According to a 2025 meta-analysis, does ketamine help depression?", "ketamine help depression"),
        ("Based on a 2025 RCT, is drug X effective?", "drug X effective"),
        ("According to a 2025 study, does exercise help anxiety?", "exercise help anxiety"),
        ("According to a 2025 systematic review, Does vitamin D help?", "vitamin D help"),
    ])
    def test_removes_citation_preamble(self, question, expected):
        assert expand_query(question) == expected

    def test_preamble_without_year(self):
        assert expand_query("Based on the evidence, does zinc shorten colds?") == "zinc shorten colds"

    @pytest.mark.parametrize("question,expected", [
        ("Does metformin reduce glucose?", "metformin reduce glucose"),
        ("Is aspirin safe for children?", "aspirin safe for children"),
        ("Can exercise prevent diabetes?", "exercise prevent diabetes"),
        ("Do statins cause muscle pain?", "statins cause muscle pain"),
    ])
    def test_removes_leading_auxiliary(self, question, expected):
        assert expand_query(question) == expected

    def test_keeps_wh_words(self):
        assert expand_query("What causes headaches?") == "What causes headaches"

    def test_auxiliary_only_as_whole_word(self):
        assert expand_query("Dosing of insulin in children?") == "Dosing of insulin in children"

    def test_normalizes_whitespace(self):
        assert expand_query("Does   metformin    reduce   glucose?") == "metformin reduce glucose"

    def test_truncates_long_query(self):
        question = (
            "Does this extremely long question about various medical conditions including "
            "hypertension diabetes cardiovascular disease and numerous other chronic conditions "
            "that might affect patient outcomes in clinical trials get truncated properly?"
        )
        expected = (
            "this extremely long question about various medical conditions including hypertension "
            "diabetes cardiovascular disease and numerous other chronic condit"
        )
        result = expand_query(question)
        assert result == expected
        assert len(result) == MAX_QUERY_LENGTH

    def test_truncation_keeps_full_length(self):
        result = expand_query("a" * 149 + " bcdef ghij")
        assert result == "a" * 149 + " "
        assert len(result) == MAX_QUERY_LENGTH

    @pytest.mark.parametrize("question", ["", "?"])
    def test_empty_results(self, question):
        assert expand_query(question) == ""

    def test_custom_max_length(self):
        assert QueryExpander(max_length=10).expand("Does metformin reduce glucose?") == "metformin"
