"""Tests for citable callout parsing."""

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from citator.core.callouts import parse_all_callouts_in_markdown, parse_callout_citation
from citator.core.models import CalloutCitationPrefix

TABLE = CalloutCitationPrefix("table:", "Table. #")
THEOREM = CalloutCitationPrefix("thm:", "Theorem #")


class TestCalloutHeader:
    """Test header matching."""

    def test_table_header(self):
        assert parse_callout_citation("[!table:1.1] Results", [TABLE]) == (TABLE, "1.1")

    def test_metadata_after_pipe_is_ignored(self):
        assert parse_callout_citation("[!table:2.3|wide]", [TABLE]) == (TABLE, "2.3")

    def test_second_prefix(self):
        assert parse_callout_citation("[!thm:4] Euler", [TABLE, THEOREM]) == (THEOREM, "4")

    @pytest.mark.parametrize("text", ["[!note] Title", "[!table:]", "[!table: ]", "table:1", ""])
    def test_not_citable(self, text):
        assert parse_callout_citation(text, [TABLE]) is None

    def test_type(self):
        assert TABLE.type == "table"
        assert CalloutCitationPrefix("lemma", "Lemma #").type == "lemma"


class TestParseAllCallouts:
    """Test block collection."""

    def test_blocks(self):
        md = "\n".join([
            "Intro",
            "> [!table:1.1] Results",
            "> | a | b |",
            "> | 1 | 2 |",
            "",
            "> [!table:2] Other",
            "> row",
            "```",
            "> [!table:9]",
            "```",
            "> [!note] skip",
        ])
        callouts = parse_all_callouts_in_markdown(md, [TABLE])
        assert len(callouts) == 2

        first, second = callouts
        assert first.raw == "> [!table:1.1] Results\n> | a | b |\n> | 1 | 2 |"
        assert first.type == "table"
        assert first.tag == "1.1"
        assert first.label == "table:1.1"
        assert first.prefix == "table:"
        assert first.content == "| a | b |\n| 1 | 2 |"
        assert (first.line_start, first.line_end) == (1, 3)
        assert first.quote_depth == 1

        assert second.label == "table:2"
        assert second.content == "row"
        assert (second.line_start, second.line_end) == (5, 6)

    def test_unclosed_block_runs_to_end(self):
        callouts = parse_all_callouts_in_markdown("> [!table:1] A\n> b", [TABLE])
        assert callouts[0].line_end == 1
        assert callouts[0].content == "b"

    def test_deeper_quote_ends_block(self):
        callouts = parse_all_callouts_in_markdown("> [!table:1] A\n> > inner\n> c", [TABLE])
        assert [(c.line_start, c.line_end) for c in callouts] == [(0, 0)]

    def test_adjacent_headers(self):
        md = "> [!table:1] A\nplain\n> [!thm:2] B"
        callouts = parse_all_callouts_in_markdown(md, [TABLE, THEOREM])
        assert [c.label for c in callouts] == ["table:1", "thm:2"]

    def test_no_prefixes(self):
        assert parse_all_callouts_in_markdown("> [!table:1] A", []) == []

    def test_empty_document(self):
        assert parse_all_callouts_in_markdown("  ", [TABLE]) == []
