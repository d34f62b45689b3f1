"""Note storage backends."""
from .base import Vault, normalize_path
from .filesystem import FileSystemVault
from .memory import InMemoryVault

__all__ = ["Vault", "FileSystemVault", "InMemoryVault", "normalize_path"]
