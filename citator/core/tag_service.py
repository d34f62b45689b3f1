"""Rename tags in citations across a file and the files citing it."""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..config import Config
from .callouts import parse_all_callouts_in_markdown
from .citation_parser import create_citation_string, parse_citations_in_markdown, split_citation_label
from .equations import get_equation_tag, parse_equations_in_markdown
from .images import parse_all_images_in_markdown
from .models import CitationRef, TagRenamePair, TagRenameResult
from .tags import (
    combine_continuous_citation_tags,
    join_file_citation,
    split_continuous_citation_tags,
    split_file_citation,
)

logger = logging.getLogger(__name__)

# Decides whether a discrete tag belongs to the cross-file group being rewritten
TagFilter = Callable[[str], bool]


class TagService:
    """Apply tag renames to citations.

    The source file's own citations are rewritten with the plain
    ``old -> new`` map. Every file linking to the source is then rewritten
    with the cross-file form of the same map, ``N^old -> N^new``, for each
    footnote ``N`` of that file pointing at the source.

    Example:
        >>> service = TagService(InMemoryVault(files), Config())
        >>> service.rename_tags("a.md", [TagRenamePair("1.1", "2.1")])
    """

    def __init__(self, vault, config=None):
        """Initialize service.

        Args:
            vault: Vault holding the notes
            config: Citator configuration (defaults used if omitted)
        """
        self.vault = vault
        self.config = config or Config()

    @property
    def _file_delimiter(self) -> str:
        return self.config.effective_file_delimiter

    def _split_label(self, label: str, prefix: str) -> List[str]:
        tags = split_citation_label(label, prefix, self.config.multi_citation_delimiter)
        return split_continuous_citation_tags(
            tags,
            self.config.effective_range_symbol,
            self.config.delimiters,
            self._file_delimiter,
        )

    def _combine(self, tags: Sequence[str]) -> List[str]:
        range_symbol = self.config.effective_range_symbol
        if range_symbol is None:
            return list(dict.fromkeys(tags))
        return combine_continuous_citation_tags(
            tags, range_symbol, self.config.delimiters, self._file_delimiter
        )

    def _citations(self, md: str, prefix: str) -> List[CitationRef]:
        return [c for c in parse_citations_in_markdown(md) if c.label.startswith(prefix)]

    def _is_local(self, tag: str) -> bool:
        return split_file_citation(tag, self._file_delimiter).cross_file is None

    def _footnote_filter(self, numbers: Iterable[str]) -> TagFilter:
        numbers = set(numbers)
        return lambda tag: split_file_citation(tag, self._file_delimiter).cross_file in numbers

    def _cross_file(self, numbers: Iterable[str], tags: Iterable[str]) -> Set[str]:
        return {join_file_citation(tag, num, self._file_delimiter) for num in numbers for tag in tags}

    def process_tag(
        self,
        tag: str,
        mapping: Dict[str, str],
        known_tags: Set[str],
        new_tags: Set[str],
        delete_unused: bool = False,
        delete_repeat: bool = False,
        managed: Optional[TagFilter] = None,
    ) -> str:
        """Rename a single discrete tag.

        Args:
            tag: Discrete tag from a citation
            mapping: Old tag to new tag map
            known_tags: Tags that exist in the cited document
            new_tags: Values of ``mapping``
            delete_unused: Drop tags missing from ``known_tags``
            delete_repeat: Drop unrenamed tags colliding with a new tag
            managed: Only tags accepted by this filter may be dropped

        Returns:
            The new tag, or ``""`` if the tag should be removed
        """
        new_tag = mapping.get(tag, tag)
        if managed is not None and not managed(tag):
            return new_tag
        if delete_unused and tag not in known_tags:
            return ""
        if delete_repeat and tag == new_tag and new_tag in new_tags:
            return ""
        return new_tag

    def _rewrite(
        self,
        lines: List[str],
        mapping: Dict[str, str],
        delete_repeat: bool,
        delete_unused: bool,
        prefix: str,
        known_tags: Optional[Set[str]],
        managed: Optional[TagFilter],
    ) -> Tuple[Dict[int, str], int]:
        citations = self._citations("\n".join(lines), prefix)
        known = set(mapping) if known_tags is None else set(known_tags)
        new_tags = set(mapping.values())
        delimiter = self.config.multi_citation_delimiter
        patched: Dict[int, str] = {}
        changed = 0

        for citation in reversed(citations):
            processed = [
                self.process_tag(t, mapping, known, new_tags, delete_unused, delete_repeat, managed)
                for t in self._split_label(citation.label, prefix)
            ]
            processed = [t for t in processed if t]
            if processed:
                replacement = create_citation_string(prefix, delimiter.join(self._combine(processed)))
            else:
                replacement = ""
            if replacement == citation.full_match:
                continue
            line = patched.get(citation.line, lines[citation.line])
            patched[citation.line] = line[:citation.start] + replacement + line[citation.end:]
            changed += 1

        return patched, changed

    def update_citation_lines(
        self,
        lines: List[str],
        mapping: Dict[str, str],
        delete_repeat: bool = False,
        delete_unused: bool = False,
        prefix: Optional[str] = None,
        known_tags: Optional[Set[str]] = None,
        managed: Optional[TagFilter] = None,
    ) -> Dict[int, str]:
        """Compute rewritten lines.

        Citations are handled from the last to the first, so several
        citations on one line are patched without shifting earlier offsets.

        Returns:
            Map of 0-based line number to new line text, changed lines only
        """
        patched, _ = self._rewrite(
            lines, mapping, delete_repeat, delete_unused,
            prefix or self.config.citation_prefix, known_tags, managed,
        )
        return patched

    def update_citations(
        self,
        md: str,
        mapping: Dict[str, str],
        delete_repeat: bool = False,
        delete_unused: bool = False,
        prefix: Optional[str] = None,
        known_tags: Optional[Set[str]] = None,
        managed: Optional[TagFilter] = None,
    ) -> Tuple[str, int]:
        """Rewrite the citations of a whole document.

        Returns:
            Tuple of (new markdown, number of citations changed)
        """
        if not md.strip():
            return md, 0
        lines = md.split("\n")
        patched, changed = self._rewrite(
            lines, mapping, delete_repeat, delete_unused,
            prefix or self.config.citation_prefix, known_tags, managed,
        )
        for num, text in patched.items():
            lines[num] = text
        return "\n".join(lines), changed

    def _footnote_numbers(self, path: str, source_path: str) -> List[str]:
        if not self.vault.exists(path):
            return []
        return self.vault.get_footnote_numbers(path, source_path)

    def _source_tags(self, md: str, prefix: str) -> Set[str]:
        """Tags of the objects in ``md`` that citations with ``prefix`` refer to."""
        if prefix == self.config.fig_citation_prefix:
            return {img.tag for img in parse_all_images_in_markdown(md, prefix) if img.tag}
        callouts = [c for c in self.config.callout_citation_prefixes if c.prefix == prefix]
        if callouts:
            return {c.tag for c in parse_all_callouts_in_markdown(md, callouts)}
        typst = self.config.enable_typst_mode
        tags = (get_equation_tag(eq.raw, typst) for eq in parse_equations_in_markdown(md))
        return {tag for tag in tags if tag}

    def rename_tags(
        self,
        source_path: str,
        pairs: Sequence[TagRenamePair],
        delete_repeat: bool = False,
        delete_unused: bool = False,
        prefix: Optional[str] = None,
        known_tags: Optional[Iterable[str]] = None,
    ) -> Optional[TagRenameResult]:
        """Rename tags in a file and in every file citing it.

        Args:
            source_path: File whose objects were renamed
            pairs: Rename requests; pairs with equal old and new tags are ignored
            delete_repeat: Drop citations that would collide after renaming
            delete_unused: Drop citations of tags unknown to the source file
            prefix: Citation prefix (defaults to ``config.citation_prefix``)
            known_tags: Full tag set of the source file before renaming.
                Defaults to the tags of the objects in the source file plus
                the old tags of all ``pairs``.

        Returns:
            TagRenameResult, or None if the source file does not exist
        """
        if not self.vault.exists(source_path):
            logger.warning(f"Source file not found: {source_path}")
            return None

        result = TagRenameResult()
        effective = [p for p in pairs if p.is_effective]
        if not effective:
            logger.debug("No effective tag renames")
            return result

        prefix = prefix or self.config.citation_prefix
        mapping = {p.old_tag: p.new_tag for p in effective}

        md = self.vault.read(source_path)
        if known_tags is not None:
            known = set(known_tags)
        else:
            known = self._source_tags(md, prefix) | {p.old_tag for p in pairs}
        updated, count = self.update_citations(
            md, mapping, delete_repeat, delete_unused, prefix, known, self._is_local
        )
        if updated != md:
            self.vault.write(source_path, updated)
        result.record(source_path, count)
        logger.info(f"Updated {count} citation(s) in {source_path}")

        if not self.config.enable_cross_file_citation:
            return result

        for backlink in self.vault.resolve_backlinks(source_path):
            numbers = self._footnote_numbers(backlink, source_path)
            if not numbers:
                logger.debug(f"Skipping {backlink}: no footnote links to {source_path}")
                result.record(backlink, 0)
                continue

            cross_mapping = {
                join_file_citation(old, num, self._file_delimiter): join_file_citation(new, num, self._file_delimiter)
                for old, new in mapping.items()
                for num in numbers
            }
            text = self.vault.read(backlink)
            updated, count = self.update_citations(
                text,
                cross_mapping,
                delete_repeat,
                delete_unused,
                prefix,
                self._cross_file(numbers, known),
                self._footnote_filter(numbers),
            )
            if updated != text:
                self.vault.write(backlink, updated)
            result.record(backlink, count)
            logger.info(f"Updated {count} citation(s) in {backlink}")

        return result

    def _existing_tags(self, path: str, prefix: str) -> Set[str]:
        if not self.vault.exists(path):
            return set()
        tags: Set[str] = set()
        for citation in self._citations(self.vault.read(path), prefix):
            tags.update(self._split_label(citation.label, prefix))
        return tags

    def check_repeated_tags(
        self,
        source_path: str,
        pairs: Sequence[TagRenamePair],
        prefix: Optional[str] = None,
    ) -> bool:
        """Tell whether renaming would collide with tags already cited.

        Nothing is written.

        Returns:
            True if a new tag is already cited in the source file, or its
            cross-file form in a file citing the source
        """
        if not self.vault.exists(source_path):
            return False
        effective = [p for p in pairs if p.is_effective]
        if not effective:
            return False

        prefix = prefix or self.config.citation_prefix
        new_tags = {p.new_tag for p in effective}
        if new_tags & self._existing_tags(source_path, prefix):
            return True

        if not self.config.enable_cross_file_citation:
            return False
        for backlink in self.vault.resolve_backlinks(source_path):
            numbers = self._footnote_numbers(backlink, source_path)
            if not numbers:
                continue
            if self._cross_file(numbers, new_tags) & self._existing_tags(backlink, prefix):
                return True
        return False

