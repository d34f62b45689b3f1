"""Custom exceptions for Citator."""
from typing import Optional


class CitatorError(Exception):
    """Base exception for all Citator errors."""

    pass


class ConfigurationError(CitatorError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(CitatorError):
    """Raised when input validation fails."""

    pass


class ParsingError(CitatorError):
    """Raised when a document cannot be parsed."""

    pass


class IllegalEquationError(ParsingError):
    """Raised when an equation block contains nested or trailing `$$` delimiters.

    Attributes:
        line: 1-based line number of the offending line
    """

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class VaultError(CitatorError):
    """Raised when a vault operation fails."""

    pass


class ConversionError(CitatorError):
    """Raised when format conversion fails."""

    pass


# Aliases for backward compatibility
ConfigError = ConfigurationError
