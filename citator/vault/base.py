"""Base vault interface.

A vault is a collection of Markdown notes addressed by POSIX-style relative
paths. Subclasses only implement raw storage; link, backlink and footnote
resolution are shared.
"""
import logging
import posixpath
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from urllib.parse import unquote

from ..core.equations import parse_equations_in_markdown
from ..core.footnotes import append_footnote, next_footnote_number, parse_footnotes_in_markdown
from ..core.models import EquationMatch, FootNote
from ..exceptions import VaultError

logger = logging.getLogger(__name__)

WIKILINK_PATTERN = re.compile(r"!?\[\[([^\]|#^]+)(?:[#^][^\]|]*)?(?:\|[^\]]*)?\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"\[[^\]]*\]\(([^)\s]+?\.md)(?:#[^)]*)?\)")


def normalize_path(path: str) -> str:
    """Canonical vault path: forward slashes, no leading ``./`` or ``/``."""
    path = posixpath.normpath(path.replace("\\", "/").strip())
    return path.lstrip("/") if path != "." else ""


class Vault(ABC):
    """Base class for note storage backends."""

    @abstractmethod
    def list_markdown_files(self) -> List[str]:
        """Return all Markdown note paths in the vault."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def read(self, path: str) -> str:
        """Read a note.

        Raises:
            VaultError: If the note does not exist or cannot be read
        """
        pass

    @abstractmethod
    def write(self, path: str, text: str) -> None:
        """Replace the whole content of a note."""
        pass

    def resolve_link(self, link: str, source_path: Optional[str] = None) -> Optional[str]:
        """Resolve a link target the way note apps do.

        Tries the exact path, the path with ``.md`` added, the path relative
        to the linking note, and finally the shortest note path whose name
        matches.

        Args:
            link: Link target as written (``folder/note``, ``note.md``)
            source_path: Path of the note containing the link

        Returns:
            Vault path of the linked note, or None
        """
        target = unquote(link).split("#")[0].strip()
        if not target:
            return None
        candidates = [target] if target.endswith(".md") else [target, f"{target}.md"]
        if source_path:
            base = posixpath.dirname(normalize_path(source_path))
            candidates += [posixpath.join(base, c) for c in list(candidates)]

        for candidate in candidates:
            path = normalize_path(candidate)
            if path and self.exists(path):
                return path

        names = {posixpath.basename(normalize_path(c)) for c in candidates}
        matches = [p for p in self.list_markdown_files() if posixpath.basename(p) in names]
        if matches:
            return min(matches, key=lambda p: (p.count("/"), p))
        return None

    def get_links(self, path: str) -> List[str]:
        """Resolved paths of all notes linked from ``path``."""
        text = self.read(path)
        targets = WIKILINK_PATTERN.findall(text) + MARKDOWN_LINK_PATTERN.findall(text)
        links = []
        for target in targets:
            resolved = self.resolve_link(target, path)
            if resolved and resolved not in links:
                links.append(resolved)
        return links

    def resolve_backlinks(self, path: str) -> List[str]:
        """Paths of all other notes that link to ``path``.

        Notes that cannot be read are skipped.
        """
        target = normalize_path(path)
        backlinks = []
        for candidate in self.list_markdown_files():
            if candidate == target:
                continue
            try:
                links = self.get_links(candidate)
            except VaultError as e:
                logger.debug(f"Skipping unreadable note {candidate}: {e}")
                continue
            if target in links:
                backlinks.append(candidate)
        return backlinks

    def get_footnotes(self, path: str) -> List[FootNote]:
        if not self.exists(path):
            return []
        return parse_footnotes_in_markdown(self.read(path))

    def get_footnote_numbers(self, path: str, source_path: str) -> List[str]:
        """Footnote numbers in ``path`` whose link resolves to ``source_path``."""
        source = normalize_path(source_path)
        return [
            fn.num for fn in self.get_footnotes(path)
            if self.resolve_link(fn.path, path) == source
        ]

    def get_equations(self, path: str) -> List[EquationMatch]:
        if not self.exists(path):
            return []
        return parse_equations_in_markdown(self.read(path))

    def ensure_footnote(self, target_path: str, source_path: str, create: bool = False) -> Optional[str]:
        """Find (or append) a footnote in ``target_path`` that links to ``source_path``.

        Returns:
            The footnote number, or None if there is none and ``create`` is off
        """
        if not self.exists(target_path):
            return None
        numbers = self.get_footnote_numbers(target_path, source_path)
        if numbers:
            return numbers[0]
        if not create or not self.exists(source_path):
            return None

        num = next_footnote_number(self.get_footnotes(target_path))
        self.write(target_path, append_footnote(self.read(target_path), num, normalize_path(source_path)))
        logger.info(f"Added footnote [^{num}] for {source_path} to {target_path}")
        return num

    def snapshot(self) -> Dict[str, str]:
        """Content of every note, keyed by path."""
        return {path: self.read(path) for path in self.list_markdown_files()}
