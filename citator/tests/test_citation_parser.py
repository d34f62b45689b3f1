"""Tests for inline citation parsing."""

from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from citator.core.citation_parser import (
    create_citation_string,
    is_valid_citation_form,
    parse_citations_in_markdown,
    split_citation_label,
)


class TestParseCitations:
    """Test parse_citations_in_markdown."""

    def test_single_citation(self):
        citations = parse_citations_in_markdown("See $\\ref{eq:1.1}$ here")
        assert len(citations) == 1
        citation = citations[0]
        assert citation.label == "eq:1.1"
        assert citation.line == 0
        assert citation.full_match == "$\\ref{eq:1.1}$"
        assert citation.start == 4
        assert citation.end == 18

    def test_multiple_citations_on_one_line(self):
        line = "$\\ref{eq:1}$ and $\\ref{eq:2}$"
        citations = parse_citations_in_markdown(line)
        assert [c.label for c in citations] == ["eq:1", "eq:2"]
        for c in citations:
            assert line[c.start:c.end] == c.full_match

    def test_line_numbers(self):
        md = "first\n\nthird $\\ref{eq:3}$"
        assert parse_citations_in_markdown(md)[0].line == 2

    def test_fenced_code_is_excluded(self):
        md = "```\n$\\ref{eq:1}$\n```\n$\\ref{eq:2}$"
        citations = parse_citations_in_markdown(md)
        assert [c.label for c in citations] == ["eq:2"]
        assert citations[0].line == 3

    def test_display_math_block_is_excluded(self):
        md = "$$\na = $\\ref{eq:2.1}$\n$$\nafter $\\ref{eq:3.1}$"
        citations = parse_citations_in_markdown(md)
        assert [c.label for c in citations] == ["eq:3.1"]

    def test_single_line_display_math_is_excluded(self):
        assert parse_citations_in_markdown("$$x \\ref{eq:1}$$") == []

    def test_adjacent_inline_formulas_do_not_open_display_math(self):
        md = "Mass $m$$\\ref{eq:1.1}$ here\nLater $\\ref{eq:1.2}$"
        citations = parse_citations_in_markdown(md)
        assert [c.label for c in citations] == ["eq:1.2"]
        assert citations[0].line == 1

    def test_spaces_inside_dollars_are_rejected(self):
        md = "This is $\\ref{eq:1.1} $ and $ \\ref{eq:2.1}$ test."
        assert parse_citations_in_markdown(md) == []

    def test_multiple_refs_in_one_formula_are_rejected(self):
        assert parse_citations_in_markdown("$\\ref{eq:1} \\ref{eq:2}$") == []

    def test_inline_code_is_excluded(self):
        assert parse_citations_in_markdown("`$\\ref{eq:1}$` text") == []

    def test_citation_with_surrounding_math(self):
        citations = parse_citations_in_markdown("$x = \\ref{eq:1}$")
        assert [c.label for c in citations] == ["eq:1"]

    def test_empty_document(self):
        assert parse_citations_in_markdown("") == []
        assert parse_citations_in_markdown("  \n ") == []

    def test_to_dict(self):
        data = parse_citations_in_markdown("$\\ref{eq:1}$")[0].to_dict()
        assert data == {"label": "eq:1", "line": 0, "full_match": "$\\ref{eq:1}$", "start": 0, "end": 12}


class TestCitationForms:
    """Test citation form helpers."""

    def test_valid_form(self):
        assert is_valid_citation_form("\\ref{eq:1.1}", "eq:") == ("eq:1.1", 0)

    def test_two_refs_are_invalid(self):
        assert is_valid_citation_form("\\ref{a}\\ref{b}") is None

    def test_prefix_mismatch(self):
        assert is_valid_citation_form("\\ref{fig:1}", "eq:") is None

    def test_create_citation_string(self):
        assert create_citation_string("eq:", "1.1") == "$\\ref{eq:1.1}$"
        assert create_citation_string("eq:", "1.1", with_dollar=False) == "\\ref{eq:1.1}"

    def test_split_label(self):
        assert split_citation_label("eq:1.1, 1.2", "eq:", ",") == ["1.1", "1.2"]
        assert split_citation_label("eq:1.1~3", "eq:", ",") == ["1.1~3"]
