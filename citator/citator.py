"""Main Citator class - entry point for the library."""
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .config import Config
from .converters.citation_renderer import make_print_markdown
from .converters.html_converter import HtmlConverter
from .core.auto_number_equations import auto_number_equations
from .core.auto_number_figures import auto_number_figures
from .core.callouts import parse_all_callouts_in_markdown
from .core.citation_parser import create_citation_string, is_valid_citation_form, parse_citations_in_markdown
from .core.markdown_line import contains_safe_chars
from .core.models import AutoNumberResult, CalloutMatch, CitationRef, TagRenamePair, TagRenameResult
from .core.tag_service import TagService
from .core.tags import join_file_citation
from .exceptions import ValidationError
from .utils.logging import setup_logging
from .vault import FileSystemVault, Vault, normalize_path

logger = logging.getLogger(__name__)

KINDS = ("equation", "figure")


class Citator:
    """Main entry point for numbering and citing equations and figures.

    Example:
        >>> from citator import Citator
        >>> citator = Citator("./notes")
        >>> result, renamed = citator.auto_number_file("chapter1.md")
        >>> citator.export_html("chapter1.md", "chapter1.html")
    """

    def __init__(
        self,
        vault: Union[Vault, str, Path, None] = None,
        config: Optional[Config] = None,
        log_level: int = logging.INFO,
    ):
        """Initialize Citator.

        Args:
            vault: A Vault, or a directory to open as a FileSystemVault
                (default: current directory)
            config: Optional Config object (default: loaded from environment)
            log_level: Logging level (default: INFO)

        Raises:
            ConfigurationError: If the configuration is invalid
            VaultError: If the vault directory does not exist
        """
        setup_logging(level=log_level)

        if config is None:
            config = Config.from_env()
        self.config = config.validate()

        if not isinstance(vault, Vault):
            vault = FileSystemVault(vault if vault is not None else ".")
        self.vault = vault

        self.tag_service = TagService(self.vault, self.config)
        self.html_converter = HtmlConverter()

        logger.info(f"Citator initialized with {type(self.vault).__name__}")

    def _prefix(self, kind: str) -> str:
        if kind == "equation":
            return self.config.citation_prefix
        if kind == "figure":
            return self.config.fig_citation_prefix
        callout = self.config.callout_prefix(kind)
        if callout is None:
            kinds = list(KINDS) + [c.type for c in self.config.callout_citation_prefixes]
            raise ValidationError(f"Unknown object kind: {kind!r} (expected one of {', '.join(kinds)})")
        return callout.prefix

    def auto_number_file(
        self,
        path: str,
        kind: str = "equation",
        update_citations: Optional[bool] = None,
    ) -> Tuple[AutoNumberResult, Optional[TagRenameResult]]:
        """Renumber equations or figures of a file and update citations.

        The file is only written once numbering succeeded, so an illegal
        equation leaves it untouched.

        Args:
            path: Vault path of the file
            kind: 'equation' or 'figure'
            update_citations: Rewrite citations in the file and its backlinks
                (default: config.enable_update_tags_in_auto_number)

        Returns:
            Tuple of (numbering result, rename result or None)

        Raises:
            IllegalEquationError: If an equation contains a nested ``$$``
            VaultError: If the file cannot be read or written
            ValidationError: If ``kind`` cannot be auto-numbered
        """
        if kind not in KINDS:
            raise ValidationError(f"Only {' and '.join(KINDS)} can be auto-numbered, got {kind!r}")
        prefix = self._prefix(kind)
        content = self.vault.read(path)

        if kind == "equation":
            result = auto_number_equations(content, self.config.equation_auto_number_configs())
        else:
            result = auto_number_figures(content, self.config.figure_auto_number_configs())

        if result.md != content:
            self.vault.write(path, result.md)
        logger.info(f"Numbered {kind}s in {path}, {len(result.tag_mapping)} existing tag(s) remapped")

        if update_citations is None:
            update_citations = self.config.enable_update_tags_in_auto_number
        if not update_citations or not result.tag_mapping:
            return result, None

        renamed = self.tag_service.rename_tags(
            path,
            result.to_pairs(),
            delete_repeat=self.config.delete_repeat_tags_in_auto_number,
            delete_unused=self.config.delete_unused_tags_in_auto_number,
            prefix=prefix,
            known_tags=set(result.tag_mapping),
        )
        return result, renamed

    def rename_tags(
        self,
        path: str,
        pairs: Sequence[TagRenamePair],
        delete_repeat: bool = False,
        delete_unused: bool = False,
        kind: str = "equation",
    ) -> Optional[TagRenameResult]:
        """Rename tags in a file and every file citing it.

        Returns:
            TagRenameResult, or None if the file does not exist
        """
        return self.tag_service.rename_tags(
            path, pairs, delete_repeat, delete_unused, prefix=self._prefix(kind)
        )

    def check_repeated_tags(self, path: str, pairs: Sequence[TagRenamePair], kind: str = "equation") -> bool:
        return self.tag_service.check_repeated_tags(path, pairs, prefix=self._prefix(kind))

    def list_citations(self, path: str, kind: Optional[str] = None) -> List[CitationRef]:
        """Citations in a file, optionally only those of one object kind."""
        citations = parse_citations_in_markdown(self.vault.read(path))
        if kind is None:
            return citations
        prefix = self._prefix(kind)
        return [c for c in citations if c.label.startswith(prefix)]

    def list_callouts(self, path: str) -> List[CalloutMatch]:
        return parse_all_callouts_in_markdown(self.vault.read(path), self.config.callout_citation_prefixes)

    def cite(
        self,
        path: str,
        tags: Sequence[str],
        source_path: Optional[str] = None,
        kind: str = "equation",
        create_footnote: bool = True,
    ) -> str:
        """Build the citation text for tags, ready to paste into ``path``.

        Tags of another note are cited through a footnote of ``path`` that
        links to ``source_path``; the footnote is appended when missing and
        ``create_footnote`` is on.

        Args:
            path: Vault path of the citing note
            tags: Tags to cite, ranges such as ``1.1~3`` allowed
            source_path: Note holding the cited objects (default: ``path``)
            kind: 'equation', 'figure' or a callout type
            create_footnote: Append a footnote to ``source_path`` if needed

        Returns:
            Citation such as ``$\\ref{eq:1^1.1,1^1.2}$``

        Raises:
            ValidationError: If a tag is malformed, the kind is unknown or no
                footnote links to ``source_path``
        """
        prefix = self._prefix(kind)
        tags = [t.strip() for t in tags]
        if not tags:
            raise ValidationError("No tags to cite")
        for tag in tags:
            if not contains_safe_chars(tag) or self.config.multi_citation_delimiter in tag:
                raise ValidationError(f"Invalid tag: {tag!r}")

        if source_path is not None and normalize_path(source_path) != normalize_path(path):
            if not self.config.enable_cross_file_citation:
                raise ValidationError("Cross-file citation is disabled")
            num = self.vault.ensure_footnote(path, source_path, create=create_footnote)
            if num is None:
                raise ValidationError(f"No footnote in {path} links to {source_path}")
            tags = [join_file_citation(t, num, self.config.file_cite_delimiter) for t in tags]

        citation = create_citation_string(prefix, self.config.multi_citation_delimiter.join(tags))
        if is_valid_citation_form(citation[1:-1], prefix) is None:
            raise ValidationError(f"Cannot build a citation from {citation!r}")
        return citation

    def make_print_markdown(self, path: str) -> str:
        return make_print_markdown(self.vault.read(path), self.config)

    def export_html(self, path: str, output_path: Optional[str] = None, include_css: bool = True) -> str:
        """Export a file as printable HTML.

        Args:
            path: Vault path of the file
            output_path: Target file (default: next to the note, ``.html`` suffix)
            include_css: Include print CSS

        Returns:
            Path to created HTML file

        Raises:
            ConversionError: If conversion fails
            ValidationError: If no output path is given for a non-filesystem vault
        """
        if output_path is None:
            if not isinstance(self.vault, FileSystemVault):
                raise ValidationError("output_path is required for this vault")
            output_path = str((self.vault.root / path).with_suffix(".html"))

        self.html_converter.title = Path(path).stem
        return self.html_converter.convert(self.make_print_markdown(path), output_path, include_css)
