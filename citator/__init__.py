"""Citator - equation and figure numbering for Markdown notes.

A Python library for cross-referenced Markdown documents including:
- Hierarchical auto-numbering of equations and figures
- Citation renaming across a note and its backlinks
- Compact and cross-file citation tags
- Citable callouts such as tables
- Print-ready HTML export
"""

from .config import Config
from .exceptions import (
    CitatorError,
    ConfigurationError,
    ValidationError,
    ParsingError,
    IllegalEquationError,
    VaultError,
    ConversionError,
)
from .core.models import (
    AutoNumberingType,
    AutoNumberResult,
    CalloutCitationPrefix,
    CalloutMatch,
    CitationRef,
    TagRenamePair,
    TagRenameResult,
)
from .vault import Vault, FileSystemVault, InMemoryVault
from .citator import Citator

__version__ = "0.1.0"
__all__ = [
    "Citator",
    "Config",
    "Vault",
    "FileSystemVault",
    "InMemoryVault",
    "AutoNumberingType",
    "AutoNumberResult",
    "CalloutCitationPrefix",
    "CalloutMatch",
    "CitationRef",
    "TagRenamePair",
    "TagRenameResult",
    "CitatorError",
    "ConfigurationError",
    "ValidationError",
    "ParsingError",
    "IllegalEquationError",
    "VaultError",
    "ConversionError",
]
