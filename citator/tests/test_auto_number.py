"""Tests for heading-driven auto-numbering of equations and figures."""

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from citator.core.auto_number import (
    AutoNumberConfigs,
    generate_new_tag,
    generate_next_tag,
    new_numbering_state,
    update_level_counters,
)
from citator.core.auto_number_equations import (
    EquationAutoNumberConfigs,
    auto_number_equations,
    get_auto_number_at_cursor,
)
from citator.core.auto_number_figures import FigureAutoNumberConfigs, auto_number_figures
from citator.core.headings import parse_headings_in_markdown, relative_heading_level
from citator.core.models import AutoNumberingType, Heading
from citator.exceptions import IllegalEquationError


def number(content, **options):
    return auto_number_equations(content, EquationAutoNumberConfigs(**options))


def lines_of(result):
    return result.md.split("\n")


class TestHeadings:
    """Test heading extraction and relative levels."""

    def test_headings_outside_code(self):
        headings = parse_headings_in_markdown("# A\n```\n# not\n```\n## B")
        assert [(h.level, h.text, h.line) for h in headings] == [(1, "A", 0), (2, "B", 4)]

    def test_quoted_headings_need_quote_parsing(self):
        assert parse_headings_in_markdown("> # A") == []
        assert len(parse_headings_in_markdown("> # A", parse_quotes=True)) == 1

    def test_relative_level_skips_missing_levels(self):
        headings = [Heading(1, "A", 0), Heading(3, "B", 1), Heading(2, "C", 2)]
        assert relative_heading_level(headings, 0) == 1
        assert relative_heading_level(headings, 1) == 2
        assert relative_heading_level(headings, 2) == 2

    def test_relative_level_invalid_index(self):
        assert relative_heading_level([], 0) == 0
        assert relative_heading_level([Heading(1, "A", 0)], 5) == 0


class TestNumberingState:
    """Test the shared counter logic."""

    def test_before_any_heading(self):
        state = new_numbering_state(AutoNumberConfigs(global_prefix="G", no_heading_prefix="P"))
        assert generate_next_tag(state) == "GP1"
        assert generate_next_tag(state) == "GP2"

    def test_level_counters(self):
        counters = [0, 0, 0]
        update_level_counters(counters, 1, 3, AutoNumberingType.RELATIVE)
        update_level_counters(counters, 2, 3, AutoNumberingType.RELATIVE)
        update_level_counters(counters, 2, 3, AutoNumberingType.RELATIVE)
        assert counters == [1, 2, 0]
        update_level_counters(counters, 1, 3, AutoNumberingType.RELATIVE)
        assert counters == [2, 0, 0]

    def test_absolute_fills_skipped_parents(self):
        counters = [0, 0, 0]
        update_level_counters(counters, 3, 3, AutoNumberingType.ABSOLUTE)
        assert counters == [1, 1, 1]

    def test_deep_headings_are_ignored(self):
        counters = [1, 0]
        update_level_counters(counters, 3, 2, AutoNumberingType.RELATIVE)
        assert counters == [1, 0]

    def test_tagged_only_skips_untagged(self):
        state = new_numbering_state(AutoNumberConfigs())
        assert generate_new_tag(state, None, True) is None
        assert generate_new_tag(state, "x", True) == "P1"


class TestAutoNumberEquations:
    """Test equation numbering."""

    def test_nested_headings(self):
        result = number("# A\n$$x=1$$\n## B\n$$y=2$$", max_depth=3)
        assert lines_of(result) == ["# A", "$$x=1 \\tag{1.1} $$", "## B", "$$y=2 \\tag{1.1.1} $$"]

    def test_depth_two(self):
        result = number("# A\n$$x=1$$\n## B\n$$y=2$$", max_depth=2)
        assert lines_of(result)[1] == "$$x=1 \\tag{1.1} $$"
        assert lines_of(result)[3] == "$$y=2 \\tag{1.2} $$"

    def test_counter_resets_under_new_heading(self):
        result = number("# A\n$$a$$\n$$b$$\n# B\n$$c$$", max_depth=2)
        tags = [line for line in lines_of(result) if line.startswith("$$")]
        assert tags == ["$$a \\tag{1.1} $$", "$$b \\tag{1.2} $$", "$$c \\tag{2.1} $$"]

    def test_equations_before_first_heading(self):
        result = number("$$a$$\n# A\n$$b$$")
        assert lines_of(result) == ["$$a \\tag{P1} $$", "# A", "$$b \\tag{1.1} $$"]

    def test_global_prefix(self):
        result = number("$$a$$", global_prefix="G", no_heading_prefix="Q")
        assert result.md == "$$a \\tag{GQ1} $$"

    def test_relative_and_absolute(self):
        content = "### C\n$$x$$"
        relative = number(content, numbering_type=AutoNumberingType.RELATIVE)
        absolute = number(content, numbering_type=AutoNumberingType.ABSOLUTE)
        assert lines_of(relative)[1] == "$$x \\tag{1.1} $$"
        assert lines_of(absolute)[1] == "$$x \\tag{1.1.1} $$"

    def test_tag_mapping(self):
        result = number("# A\n$$a \\tag{3}$$\n$$b \\tag{1}$$\n$$c$$")
        assert result.tag_mapping == {"3": "1.1", "1": "1.2"}
        assert [(p.old_tag, p.new_tag) for p in result.to_pairs()] == [("3", "1.1"), ("1", "1.2")]

    def test_tagged_only(self):
        result = number("# A\n$$a$$\n$$b \\tag{9}$$", enable_tagged_only=True)
        assert lines_of(result) == ["# A", "$$a$$", "$$b \\tag{1.1} $$"]
        assert result.tag_mapping == {"9": "1.1"}

    def test_tagged_only_keeps_untagged_blocks_verbatim(self):
        content = "# A\n$$\n  x = 1\n$$"
        result = number(content, enable_tagged_only=True)
        assert result.md == content

    def test_multiline_block(self):
        result = number("# A\n$$\nx = 1\n$$")
        assert result.md == "# A\n$$\nx = 1 \\tag{1.1}\n$$"

    def test_block_tag_on_own_line_is_replaced(self):
        result = number("$$\nx\n\\tag{5}\n$$")
        assert result.md == "$$\nx \\tag{P1}\n$$"
        assert result.tag_mapping == {"5": "P1"}

    def test_numbering_is_idempotent(self):
        once = number("# A\n$$a$$\n$$\nb\n$$\n## B\n$$c \\tag{7}$$")
        twice = number(once.md)
        assert twice.md == once.md

    def test_code_blocks_are_skipped(self):
        result = number("```\n$$x$$\n```\n$$y$$")
        assert lines_of(result) == ["```", "$$x$$", "```", "$$y \\tag{P1} $$"]

    def test_quoted_equations(self):
        assert number("> $$x$$").md == "> $$x$$"
        assert number("> $$x$$", parse_quotes=True).md == "> $$x \\tag{P1} $$"

    def test_typst_mode(self):
        result = number('# A\n$$x #label("old")$$', enable_typst_mode=True)
        assert lines_of(result)[1] == '$$x #label("1.1") $$'
        assert result.tag_mapping == {"old": "1.1"}

    def test_nested_dollars_in_single_line(self):
        with pytest.raises(IllegalEquationError) as exc_info:
            number("# A\n$$x$$ $$y$$")
        assert exc_info.value.line == 2
        assert "line 2" in str(exc_info.value)

    def test_nested_dollars_in_block(self):
        with pytest.raises(IllegalEquationError) as exc_info:
            number("$$\nx $$ y\n$$")
        assert exc_info.value.line == 2

    def test_unclosed_block_runs_to_end(self):
        result = number("$$\nx")
        assert result.md == "$$\nx \\tag{P1} $$"


class TestAutoNumberAtCursor:
    """Test tag preview under a cursor."""

    def test_cursor_on_equation(self):
        content = "# A\n$$x$$\n$$y$$"
        configs = EquationAutoNumberConfigs()
        assert get_auto_number_at_cursor(content, 1, 2, configs) == "1.1"
        assert get_auto_number_at_cursor(content, 2, 2, configs) == "1.2"

    def test_cursor_outside_equations(self):
        configs = EquationAutoNumberConfigs()
        assert get_auto_number_at_cursor("# A\ntext", 1, 0, configs) is None
        assert get_auto_number_at_cursor("# A", 0, 0, configs) is None
        assert get_auto_number_at_cursor("# A", 7, 0, configs) is None


class TestAutoNumberFigures:
    """Test figure numbering."""

    @pytest.fixture
    def configs(self):
        return FigureAutoNumberConfigs(max_depth=2, no_heading_prefix="F")

    def test_wikilink_images(self, configs):
        result = auto_number_figures("# A\n![[a.png]]\n![[b.png|fig:9|title:B]]", configs)
        assert result.md.split("\n")[1:] == ["![[a.png|fig:1.1]]", "![[b.png|title:B|fig:1.2]]"]
        assert result.tag_mapping == {"9": "1.2"}

    def test_width_stays_last(self, configs):
        result = auto_number_figures("![[a.png|300]]", configs)
        assert result.md == "![[a.png|fig:F1|300]]"

    def test_markdown_image(self, configs):
        result = auto_number_figures("![alt](x.png)", configs)
        assert result.md == "![alt|fig:F1](x.png)"

    def test_images_in_code_are_skipped(self, configs):
        content = "```\n![[a.png]]\n```"
        assert auto_number_figures(content, configs).md == content

    def test_quoted_images(self, configs):
        assert auto_number_figures("> ![[a.png]]", configs).md == "> ![[a.png]]"
        configs.parse_quotes = True
        assert auto_number_figures("> ![[a.png]]", configs).md == "> ![[a.png|fig:F1]]"

    def test_tagged_only(self, configs):
        configs.enable_tagged_only = True
        result = auto_number_figures("![[a.png]]\n![[b.png|fig:x]]", configs)
        assert result.md == "![[a.png]]\n![[b.png|fig:F1]]"
