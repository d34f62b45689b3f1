"""Configuration management for Citator."""
import os
from dataclasses import dataclass, field, fields
from typing import List, Optional

from dotenv import load_dotenv

from .core.auto_number_equations import EquationAutoNumberConfigs
from .core.auto_number_figures import FigureAutoNumberConfigs
from .core.markdown_line import (
    DISABLED_DELIMITER,
    contains_safe_chars,
    validate_delimiter,
    validate_display_format,
    validate_letter_prefix,
)
from .core.models import AutoNumberingType, CalloutCitationPrefix
from .core.tags import parse_delimiters
from .exceptions import ConfigurationError

ENV_PREFIX = "CITATOR_"


@dataclass
class Config:
    """Citator configuration.

    Attributes:
        citation_prefix: Label prefix of equation citations (``eq:``)
        citation_format: Display template for equation citations, one ``#``
        fig_citation_prefix: Label prefix of figure citations
        fig_citation_format: Display template for figure citations
        callout_citation_prefixes: Citable callout types with their display templates
        multi_citation_delimiter: Separator between tags in one citation
        multi_citation_delimiter_render: Separator used when rendering
        enable_continuous_citation: Compact consecutive tags into ranges
        continuous_range_symbol: Range marker (``1.1~3``)
        continuous_delimiters: Space separated numbering-level delimiters
        enable_cross_file_citation: Allow ``<footnote>^<tag>`` citations
        file_cite_delimiter: Separator between footnote number and tag
        auto_number_type: Relative or Absolute heading levels
        auto_number_depth: Maximum numbering depth for equations
        auto_number_delimiter: Level delimiter for equation tags
        auto_number_no_heading_prefix: Prefix for equations before any heading
        auto_number_global_prefix: Prefix for every equation tag
        enable_auto_number_equations_in_quotes: Number equations in quotes
        enable_auto_number_tagged_equations_only: Number only tagged equations
        fig_auto_number_depth: Maximum numbering depth for figures
        fig_auto_number_delimiter: Level delimiter for figure tags
        fig_auto_number_no_heading_prefix: Prefix for figures before any heading
        fig_auto_number_global_prefix: Prefix for every figure tag
        enable_auto_number_figures_in_quotes: Number figures in quotes
        enable_auto_number_tagged_figures_only: Number only tagged figures
        enable_update_tags_in_auto_number: Rewrite citations after numbering
        delete_repeat_tags_in_auto_number: Drop colliding citations
        delete_unused_tags_in_auto_number: Drop citations of unknown tags
        enable_typst_mode: Use ``#label("...")`` equation tags
        citation_color_in_pdf: Citation colour in exported documents
    """

    # Citation syntax
    citation_prefix: str = "eq:"
    citation_format: str = "(#)"
    fig_citation_prefix: str = "fig:"
    fig_citation_format: str = "Fig. #"
    callout_citation_prefixes: List[CalloutCitationPrefix] = field(
        default_factory=lambda: [CalloutCitationPrefix("table:", "Table. #")]
    )
    multi_citation_delimiter: str = ","
    multi_citation_delimiter_render: str = ", "

    # Continuous citations
    enable_continuous_citation: bool = True
    continuous_range_symbol: str = "~"
    continuous_delimiters: str = ". - : \\_"

    # Cross-file citations
    enable_cross_file_citation: bool = True
    file_cite_delimiter: str = "^"

    # Equation auto-numbering
    auto_number_type: AutoNumberingType = AutoNumberingType.RELATIVE
    auto_number_depth: int = 3
    auto_number_delimiter: str = "."
    auto_number_no_heading_prefix: str = "P"
    auto_number_global_prefix: str = ""
    enable_auto_number_equations_in_quotes: bool = False
    enable_auto_number_tagged_equations_only: bool = False

    # Figure auto-numbering
    fig_auto_number_depth: int = 2
    fig_auto_number_delimiter: str = "."
    fig_auto_number_no_heading_prefix: str = "F"
    fig_auto_number_global_prefix: str = ""
    enable_auto_number_figures_in_quotes: bool = False
    enable_auto_number_tagged_figures_only: bool = False

    # Citation updates after auto-numbering
    enable_update_tags_in_auto_number: bool = True
    delete_repeat_tags_in_auto_number: bool = True
    delete_unused_tags_in_auto_number: bool = False

    # Misc
    enable_typst_mode: bool = False
    citation_color_in_pdf: str = "#4199df"

    def __post_init__(self):
        if not isinstance(self.auto_number_type, AutoNumberingType):
            self.auto_number_type = _parse_numbering_type(str(self.auto_number_type))
        if isinstance(self.callout_citation_prefixes, str):
            self.callout_citation_prefixes = parse_callout_prefixes(self.callout_citation_prefixes)
        self.callout_citation_prefixes = [
            CalloutCitationPrefix(**p) if isinstance(p, dict) else p
            for p in self.callout_citation_prefixes
        ]

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables.

        Every option maps to ``CITATOR_<OPTION_NAME_UPPERCASE>``, e.g.
        ``CITATOR_CITATION_PREFIX`` or ``CITATOR_AUTO_NUMBER_DEPTH``. Callout
        types are written as ``CITATOR_CALLOUT_CITATION_PREFIXES="table:=Table. #;thm:=Theorem #"``.

        Args:
            env_file: Path to .env file (optional)

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If a numeric or boolean value cannot be parsed
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        defaults = cls()
        values = {}
        for f in fields(cls):
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = _convert(f.name, raw, getattr(defaults, f.name))
        return cls(**values)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Load configuration from dictionary.

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            Config instance
        """
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})

    def validate(self) -> "Config":
        """Check option values.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: On the first invalid option
        """
        for name in ("multi_citation_delimiter", "file_cite_delimiter",
                     "auto_number_delimiter", "fig_auto_number_delimiter"):
            if not validate_delimiter(getattr(self, name)):
                raise ConfigurationError(f"Invalid delimiter for {name}: {getattr(self, name)!r}")
        if self.enable_continuous_citation and not validate_delimiter(self.continuous_range_symbol):
            raise ConfigurationError(
                f"Invalid range symbol: {self.continuous_range_symbol!r}"
            )
        for name in ("citation_format", "fig_citation_format"):
            if not validate_display_format(getattr(self, name)):
                raise ConfigurationError(f"{name} must contain exactly one '#': {getattr(self, name)!r}")
        for name in ("auto_number_no_heading_prefix", "fig_auto_number_no_heading_prefix"):
            if not validate_letter_prefix(getattr(self, name)):
                raise ConfigurationError(f"{name} may only contain letters: {getattr(self, name)!r}")
        for name in ("auto_number_depth", "fig_auto_number_depth"):
            depth = getattr(self, name)
            if not 1 <= depth <= 6:
                raise ConfigurationError(f"{name} must be between 1 and 6, got {depth}")
        if not self.citation_prefix:
            raise ConfigurationError("citation_prefix must not be empty")
        for callout in self.callout_citation_prefixes:
            if not contains_safe_chars(callout.prefix) or " " in callout.prefix:
                raise ConfigurationError(f"Invalid callout citation prefix: {callout.prefix!r}")
            if not validate_display_format(callout.format):
                raise ConfigurationError(f"Callout format must contain exactly one '#': {callout.format!r}")
        prefixes = [self.citation_prefix, self.fig_citation_prefix] + [c.prefix for c in self.callout_citation_prefixes]
        if len(set(prefixes)) != len(prefixes):
            raise ConfigurationError(f"Citation prefixes must be distinct: {', '.join(prefixes)}")
        return self

    @property
    def delimiters(self) -> List[str]:
        return parse_delimiters(self.continuous_delimiters)

    @property
    def effective_file_delimiter(self) -> str:
        """File delimiter, or a sentinel that never occurs when cross-file citation is off."""
        if self.enable_cross_file_citation:
            return self.file_cite_delimiter
        return DISABLED_DELIMITER

    @property
    def effective_range_symbol(self) -> Optional[str]:
        if self.enable_continuous_citation:
            return self.continuous_range_symbol
        return None

    def callout_prefix(self, kind: str) -> Optional[CalloutCitationPrefix]:
        """The citable callout type named ``kind`` (``table``), or None."""
        return next((c for c in self.callout_citation_prefixes if c.type == kind), None)

    def equation_auto_number_configs(self) -> EquationAutoNumberConfigs:
        return EquationAutoNumberConfigs(
            numbering_type=self.auto_number_type,
            max_depth=self.auto_number_depth,
            delimiter=self.auto_number_delimiter,
            no_heading_prefix=self.auto_number_no_heading_prefix,
            global_prefix=self.auto_number_global_prefix,
            parse_quotes=self.enable_auto_number_equations_in_quotes,
            enable_tagged_only=self.enable_auto_number_tagged_equations_only,
            enable_typst_mode=self.enable_typst_mode,
        )

    def figure_auto_number_configs(self) -> FigureAutoNumberConfigs:
        return FigureAutoNumberConfigs(
            numbering_type=self.auto_number_type,
            max_depth=self.fig_auto_number_depth,
            delimiter=self.fig_auto_number_delimiter,
            no_heading_prefix=self.fig_auto_number_no_heading_prefix,
            global_prefix=self.fig_auto_number_global_prefix,
            parse_quotes=self.enable_auto_number_figures_in_quotes,
            enable_tagged_only=self.enable_auto_number_tagged_figures_only,
            fig_citation_prefix=self.fig_citation_prefix,
        )


def _parse_numbering_type(value: str) -> AutoNumberingType:
    for member in AutoNumberingType:
        if value.strip().lower() == member.value.lower():
            return member
    raise ConfigurationError(f"Unknown auto_number_type: {value!r} (expected Relative or Absolute)")


def _convert(name: str, raw: str, default):
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
    if isinstance(default, AutoNumberingType):
        return _parse_numbering_type(raw)
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}")
    return raw


def parse_callout_prefixes(raw: str) -> List[CalloutCitationPrefix]:
    """Parse ``"table:=Table. #;thm:=Theorem #"`` into callout prefixes."""
    prefixes = []
    for entry in raw.split(";"):
        if not entry.strip():
            continue
        prefix, sep, fmt = entry.partition("=")
        if not sep or not prefix.strip():
            raise ConfigurationError(f"Invalid callout citation prefix {entry!r}, expected PREFIX=FORMAT")
        prefixes.append(CalloutCitationPrefix(prefix.strip(), fmt.strip()))
    return prefixes
