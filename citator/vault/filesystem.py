"""Vault on a local directory tree."""
import logging
from pathlib import Path
from typing import List, Union

from ..exceptions import VaultError
from .base import Vault, normalize_path

logger = logging.getLogger(__name__)


class FileSystemVault(Vault):
    """Notes stored as ``.md`` files under a root directory."""

    def __init__(self, root: Union[str, Path]):
        """Initialize vault.

        Args:
            root: Vault root directory

        Raises:
            VaultError: If the root is not a directory
        """
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise VaultError(f"Vault directory not found: {root}")

    def _full_path(self, path: str) -> Path:
        full = (self.root / normalize_path(path)).resolve()
        if self.root not in full.parents and full != self.root:
            raise VaultError(f"Path escapes vault root: {path}")
        return full

    def relative_path(self, path: Union[str, Path]) -> str:
        """Vault path of a filesystem path (absolute or relative to the cwd)."""
        full = Path(path).resolve()
        try:
            return full.relative_to(self.root).as_posix()
        except ValueError:
            raise VaultError(f"{path} is not inside vault {self.root}")

    def list_markdown_files(self) -> List[str]:
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*.md")
            if p.is_file()
        )

    def exists(self, path: str) -> bool:
        try:
            return self._full_path(path).is_file()
        except VaultError:
            return False

    def read(self, path: str) -> str:
        full = self._full_path(path)
        try:
            with open(full, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise VaultError(f"Failed to read {path}: {e}")

    def write(self, path: str, text: str) -> None:
        full = self._full_path(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            with open(full, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise VaultError(f"Failed to write {path}: {e}")
        logger.debug(f"Wrote {path}")
