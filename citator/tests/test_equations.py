"""Tests for display equation parsing."""

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from citator.core.equations import (
    create_equation_tag_string,
    detect_illegal_equation,
    format_equation,
    get_equation_tag,
    parse_equation_tag,
    parse_equations_in_markdown,
    trim_equation_raw,
)


class TestEquationTags:
    """Test tag extraction and formatting."""

    def test_parse_tag(self):
        assert parse_equation_tag("$$a+b \\tag{1.1}$$") == ("a+b", "1.1")

    def test_parse_untagged(self):
        assert parse_equation_tag("$$a+b$$") == ("a+b", None)

    def test_tag_whitespace_is_trimmed(self):
        assert get_equation_tag("x \\tag{ 2.3 }") == "2.3"

    def test_empty_tag_is_ignored(self):
        assert get_equation_tag("x \\tag{}") is None

    def test_block_layout_is_kept(self):
        body, tag = parse_equation_tag("$$\nx = 1 \\tag{3}\n$$")
        assert body == "\nx = 1\n"
        assert tag == "3"

    def test_typst_tag(self):
        assert parse_equation_tag('$$x #label("eq1")$$', typst=True) == ("x", "eq1")
        assert create_equation_tag_string("1.1", typst=True) == '#label("1.1")'

    def test_latex_tag_string(self):
        assert create_equation_tag_string("1.1") == "\\tag{1.1}"

    def test_format_single_line(self):
        assert format_equation("x", "\\tag{1}") == "$$x \\tag{1} $$"

    def test_format_block(self):
        assert format_equation("\nx\n", "\\tag{1}") == "$$\nx \\tag{1}\n$$"

    def test_trim_raw(self):
        assert trim_equation_raw("$$ x $$") == "x"


class TestDetectIllegalEquation:
    """Test detection of misplaced $$ inside blocks."""

    def test_legal_block(self):
        assert detect_illegal_equation("$$\nx\n$$") == -1

    def test_single_delimiter(self):
        assert detect_illegal_equation("$$\nx") == -1

    def test_text_after_closing(self):
        assert detect_illegal_equation("$$\nx\n$$ tail") == 2

    def test_inner_delimiter(self):
        assert detect_illegal_equation("$$\nx $$ y\n$$") == 1

    def test_escaped_dollars_are_fine(self):
        assert detect_illegal_equation("$$\n\\$$\n$$") == -1


class TestParseEquations:
    """Test parse_equations_in_markdown."""

    def test_single_and_block(self):
        md = "$$a \\tag{1}$$\ntext\n$$\nb\n\\tag{2}\n$$"
        equations = parse_equations_in_markdown(md)
        assert [(e.line_start, e.line_end, e.tag) for e in equations] == [(0, 0, "1"), (2, 5, "2")]
        assert equations[0].content == "a \\tag{1}"
        assert equations[1].content == "b\n\\tag{2}"

    def test_code_blocks_are_skipped(self):
        md = "```\n$$x$$\n```"
        assert parse_equations_in_markdown(md) == []

    def test_quoted_equation(self):
        equations = parse_equations_in_markdown("> $$x$$")
        assert len(equations) == 1
        assert equations[0].in_quote
        assert parse_equations_in_markdown("> $$x$$", parse_quotes=False) == []

    def test_unclosed_block(self):
        equations = parse_equations_in_markdown("$$\nx\ny")
        assert len(equations) == 1
        assert equations[0].line_end == 2
        assert equations[0].content == "x\ny"

    @pytest.mark.parametrize("md", ["", "   \n"])
    def test_blank_document(self, md):
        assert parse_equations_in_markdown(md) == []
