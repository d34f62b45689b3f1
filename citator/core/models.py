"""Data models for Citator."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any
import re


class AutoNumberingType(str, Enum):
    """How heading depth is measured while auto-numbering."""

    RELATIVE = "Relative"
    ABSOLUTE = "Absolute"


@dataclass
class CitationRef:
    """One parsed `$\\ref{...}$` occurrence.

    Attributes:
        label: Raw text inside the braces (prefix + tag body, possibly multiple tags)
        line: 0-based line index of the citation
        full_match: The complete `$...$` text
        start: Column of the opening `$` in the line
        end: Column just after the closing `$`
    """

    label: str
    line: int
    full_match: str
    start: int = 0
    end: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert citation to dictionary."""
        return {
            "label": self.label,
            "line": self.line,
            "full_match": self.full_match,
            "start": self.start,
            "end": self.end,
        }


@dataclass
class TagRenamePair:
    """A request to replace one tag value with another."""

    old_tag: str
    new_tag: str

    @property
    def is_effective(self) -> bool:
        return self.old_tag != self.new_tag


@dataclass
class TagRenameResult:
    """Outcome of a rename across a source file and its backlinks.

    Attributes:
        total_files_changed: Number of files with at least one changed citation
        total_citations_changed: Sum of changed citations over all files
        details: Per-file change counts, zero entries included
    """

    total_files_changed: int = 0
    total_citations_changed: int = 0
    details: Dict[str, int] = field(default_factory=dict)

    def record(self, path: str, count: int) -> None:
        self.details[path] = count
        if count > 0:
            self.total_files_changed += 1
            self.total_citations_changed += count


@dataclass
class AutoNumberingState:
    """Counters threaded through a single auto-numbering walk."""

    level_counters: List[int]
    max_depth: int
    delimiter: str
    global_prefix: str = ""
    no_heading_prefix: str = ""
    obj_number_before_heading: int = 0
    obj_number: int = 0
    current_depth: int = 0


@dataclass
class AutoNumberResult:
    """Renumbered document plus the old-tag to new-tag mapping."""

    md: str
    tag_mapping: Dict[str, str] = field(default_factory=dict)

    def to_pairs(self) -> List[TagRenamePair]:
        return [TagRenamePair(old, new) for old, new in self.tag_mapping.items()]


@dataclass
class Heading:
    """A Markdown heading (`#` to `######`)."""

    level: int
    text: str
    line: int


@dataclass
class EquationMatch:
    """An equation found in a document.

    Attributes:
        raw: Source text of the equation as it appears in the file
        content: Equation body without the surrounding `$$`
        line_start: 0-based first line
        line_end: 0-based last line
        tag: Tag label, if the equation carries one
        in_quote: Whether the equation sits inside a blockquote
    """

    raw: str
    content: str
    line_start: int
    line_end: int
    tag: Optional[str] = None
    in_quote: bool = False


@dataclass
class FootNote:
    """A footnote of the form `[^num]: [[path|label]]`."""

    num: str
    path: str
    label: Optional[str] = None


@dataclass
class ImageMatch:
    """An image embed with optional figure metadata.

    Attributes:
        raw: The full line the image was parsed from
        kind: 'wikilink' for `![[...]]`, 'markdown' for `![...](...)`
        path: Image path or URL
        alt: Alt text (markdown images only)
        tag: Figure tag without its prefix
        title: Value of a `title:` metadata part
        desc: Value of a `desc:` metadata part
        in_quote: Whether the image sits inside a blockquote
        line: 0-based line index
    """

    raw: str
    kind: str
    path: str
    alt: str = ""
    tag: Optional[str] = None
    title: Optional[str] = None
    desc: Optional[str] = None
    in_quote: bool = False
    line: int = 0


@dataclass
class CalloutCitationPrefix:
    """A citable callout type, e.g. ``> [!table:1.1]`` rendered as ``Table. 1.1``."""

    prefix: str
    format: str

    @property
    def type(self) -> str:
        return self.prefix[:-1] if self.prefix.endswith(":") else self.prefix


@dataclass
class CalloutMatch:
    """A callout block whose header carries a citation label.

    Attributes:
        raw: Source lines of the block, quote markers included
        type: Callout type, the prefix without its trailing colon
        tag: Tag without its prefix
        label: Prefix and tag (``table:1.1``)
        prefix: The configured prefix that matched
        content: Block text after the header line
        line_start: 0-based header line
        line_end: 0-based last line of the block
        quote_depth: Quote depth of the block
    """

    raw: str
    type: str
    tag: str
    label: str
    prefix: str
    content: str
    line_start: int
    line_end: int
    quote_depth: int = 1


@dataclass
class QuoteLineMatch:
    """Result of stripping blockquote markers from a line."""

    content: str
    quote_depth: int
    is_quote: bool


@dataclass
class MarkdownLineEnvironment:
    """Classification of a single Markdown line."""

    processed_content: str
    cleaned_line: str
    in_quote: bool = False
    quote_depth: int = 0
    heading_match: Optional[re.Match] = None
    is_code_block_toggle: bool = False
    single_line_equation_match: Optional[re.Match] = None
    is_equation_block_start: bool = False
    is_equation_block_end: bool = False
    is_image: bool = False

    @property
    def is_heading(self) -> bool:
        return self.heading_match is not None

    @property
    def is_single_line_equation(self) -> bool:
        return self.single_line_equation_match is not None
