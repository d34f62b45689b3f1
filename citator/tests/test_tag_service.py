"""Tests for the citation rewrite engine."""

from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from citator.config import Config
from citator.core.models import TagRenamePair
from citator.core.tag_service import TagService
from citator.vault import InMemoryVault


@pytest.fixture
def vault():
    return InMemoryVault({
        "a.md": "# A\n$$x \\tag{1.1}$$\nSee $\\ref{eq:1.1}$.",
        "b.md": "Cite $\\ref{eq:1^1.1}$ and $\\ref{eq:2^1.1}$.\n\n[^1]: [[a]]\n[^2]: [[c]]",
        "c.md": "Mentions [[a]] without footnotes.",
    })


@pytest.fixture
def service(vault):
    return TagService(vault, Config())


class TestProcessTag:
    """Test single-tag decisions."""

    def test_rename(self, service):
        assert service.process_tag("1.1", {"1.1": "2.1"}, {"1.1"}, {"2.1"}) == "2.1"

    def test_unmapped_tag_is_kept(self, service):
        assert service.process_tag("3.1", {"1.1": "2.1"}, {"1.1"}, {"2.1"}) == "3.1"

    def test_delete_unused(self, service):
        assert service.process_tag("3.1", {}, {"1.1"}, set(), delete_unused=True) == ""

    def test_delete_repeat(self, service):
        assert service.process_tag("2.1", {"1.1": "2.1"}, {"1.1", "2.1"}, {"2.1"}, delete_repeat=True) == ""

    def test_unmanaged_tags_are_never_deleted(self, service):
        result = service.process_tag(
            "3^9.9", {}, set(), set(), delete_unused=True, managed=lambda tag: "^" not in tag
        )
        assert result == "3^9.9"


class TestUpdateCitations:
    """Test document-level rewriting."""

    def test_simple_rename(self, service):
        md, count = service.update_citations("See $\\ref{eq:1.1}$.", {"1.1": "2.1"})
        assert md == "See $\\ref{eq:2.1}$."
        assert count == 1

    def test_unchanged_citations_are_not_counted(self, service):
        md, count = service.update_citations("$\\ref{eq:1.1}$ $\\ref{eq:5}$", {"1.1": "2.1"})
        assert md == "$\\ref{eq:2.1}$ $\\ref{eq:5}$"
        assert count == 1

    def test_several_citations_on_one_line(self, service):
        md, _ = service.update_citations(
            "$\\ref{eq:1}$ and $\\ref{eq:22}$ and $\\ref{eq:1}$", {"1": "333", "22": "4"}
        )
        assert md == "$\\ref{eq:333}$ and $\\ref{eq:4}$ and $\\ref{eq:333}$"

    def test_range_is_split_and_recombined(self, service):
        md, _ = service.update_citations("$\\ref{eq:1.1~3}$", {"1.2": "2.1"})
        assert md == "$\\ref{eq:1.1,2.1,1.3}$"

    def test_renamed_tags_join_a_range(self, service):
        md, _ = service.update_citations("$\\ref{eq:1.1, 1.5}$", {"1.5": "1.2"})
        assert md == "$\\ref{eq:1.1~2}$"

    def test_ranges_stay_split_without_continuous_citation(self):
        service = TagService(InMemoryVault(), Config(enable_continuous_citation=False))
        md, _ = service.update_citations("$\\ref{eq:1.1, 1.5}$", {"1.5": "1.2"})
        assert md == "$\\ref{eq:1.1,1.2}$"

    def test_other_prefixes_are_ignored(self, service):
        md, count = service.update_citations("$\\ref{fig:1.1}$", {"1.1": "2.1"})
        assert md == "$\\ref{fig:1.1}$"
        assert count == 0

    def test_figure_prefix(self, service):
        md, _ = service.update_citations("$\\ref{fig:1.1}$", {"1.1": "2.1"}, prefix="fig:")
        assert md == "$\\ref{fig:2.1}$"

    def test_citations_in_code_are_kept(self, service):
        md = "```\n$\\ref{eq:1.1}$\n```"
        assert service.update_citations(md, {"1.1": "2.1"}) == (md, 0)

    def test_line_map(self, service):
        lines = ["a", "$\\ref{eq:1.1}$", "c"]
        assert service.update_citation_lines(lines, {"1.1": "2.1"}) == {1: "$\\ref{eq:2.1}$"}

    def test_empty_document(self, service):
        assert service.update_citations("", {"1.1": "2.1"}) == ("", 0)


class TestRenameTags:
    """Test renames across a source file and its backlinks."""

    def test_source_and_backlinks(self, service, vault):
        result = service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")])
        assert vault.read("a.md").endswith("See $\\ref{eq:2.1}$.")
        assert vault.read("b.md").startswith("Cite $\\ref{eq:1^2.1}$ and $\\ref{eq:2^1.1}$.")
        assert result.details == {"a.md": 1, "b.md": 1, "c.md": 0}
        assert result.total_files_changed == 2
        assert result.total_citations_changed == 2

    def test_missing_source(self, service):
        assert service.rename_tags("missing.md", [TagRenamePair("1", "2")]) is None

    def test_no_effective_pairs(self, service, vault):
        before = vault.snapshot()
        result = service.rename_tags("a.md", [TagRenamePair("1.1", "1.1")])
        assert result.total_files_changed == 0
        assert result.details == {}
        assert vault.snapshot() == before

    def test_delete_repeat(self):
        vault = InMemoryVault({"a.md": "See $\\ref{eq:1.1}$ and $\\ref{eq:1.2}$."})
        service = TagService(vault, Config())
        pairs = [TagRenamePair("1.1", "1.1"), TagRenamePair("1.2", "1.1")]
        result = service.rename_tags("a.md", pairs, delete_repeat=True)
        assert vault.read("a.md") == "See  and $\\ref{eq:1.1}$."
        assert result.details["a.md"] == 2

    def test_delete_unused_keeps_cross_file_tags(self):
        vault = InMemoryVault({"a.md": "$\\ref{eq:1.1, 9.9}$ and $\\ref{eq:3^9.9}$"})
        service = TagService(vault, Config())
        service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")], delete_unused=True)
        assert vault.read("a.md") == "$\\ref{eq:2.1}$ and $\\ref{eq:3^9.9}$"

    def test_delete_unused_keeps_tags_of_the_source(self):
        vault = InMemoryVault({
            "a.md": '$$a #label("1.1")$$\n$$b #label("1.2")$$\n$\\ref{eq:1.2}$ $\\ref{eq:9.9}$',
            "b.md": "$\\ref{eq:1^1.2}$ $\\ref{eq:1^9.9}$\n\n[^1]: [[a]]",
        })
        service = TagService(vault, Config(enable_typst_mode=True))
        service.rename_tags("a.md", [TagRenamePair("1.1", "3.1")], delete_unused=True)
        assert vault.read("a.md").split("\n")[2] == "$\\ref{eq:1.2}$ "
        assert vault.read("b.md").startswith("$\\ref{eq:1^1.2}$ \n")

    def test_cross_file_disabled(self, vault):
        service = TagService(vault, Config(enable_cross_file_citation=False))
        before = vault.read("b.md")
        result = service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")])
        assert vault.read("b.md") == before
        assert list(result.details) == ["a.md"]

    def test_rename_is_idempotent(self, service, vault):
        service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")])
        after = vault.snapshot()
        result = service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")])
        assert vault.snapshot() == after
        assert result.total_citations_changed == 0


class TestCheckRepeatedTags:
    """Test collision detection."""

    def test_collision_in_source(self):
        vault = InMemoryVault({"a.md": "$\\ref{eq:1.1}$ $\\ref{eq:2.1}$"})
        service = TagService(vault, Config())
        assert service.check_repeated_tags("a.md", [TagRenamePair("1.1", "2.1")])
        assert not service.check_repeated_tags("a.md", [TagRenamePair("1.1", "3.1")])

    def test_collision_in_backlink(self, vault):
        vault.write("b.md", vault.read("b.md").replace("eq:2^1.1", "eq:1^2.1"))
        service = TagService(vault, Config())
        assert service.check_repeated_tags("a.md", [TagRenamePair("1.1", "2.1")])

    def test_check_does_not_write(self, service, vault):
        before = vault.snapshot()
        service.check_repeated_tags("a.md", [TagRenamePair("1.1", "2.1")])
        assert vault.snapshot() == before

    def test_missing_source(self, service):
        assert not service.check_repeated_tags("nope.md", [TagRenamePair("1", "2")])
