"""In-memory vault."""
from typing import Dict, List, Optional

from ..exceptions import VaultError
from .base import Vault, normalize_path


class InMemoryVault(Vault):
    """Vault backed by a dict of path -> content.

    Example:
        >>> vault = InMemoryVault({"a.md": "See [[b]]", "b.md": "$$x$$"})
        >>> vault.resolve_backlinks("b.md")
        ['a.md']
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = {
            normalize_path(path): text for path, text in (files or {}).items()
        }

    def list_markdown_files(self) -> List[str]:
        return sorted(p for p in self.files if p.endswith(".md"))

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self.files

    def read(self, path: str) -> str:
        try:
            return self.files[normalize_path(path)]
        except KeyError:
            raise VaultError(f"File not found: {path}")

    def write(self, path: str, text: str) -> None:
        self.files[normalize_path(path)] = text
