"""Locate inline ``$\\ref{...}$`` citations in Markdown."""
import logging
import re
from typing import Iterator, List, Optional, Tuple

from .markdown_line import count_display_math_delimiters, is_code_block_toggle, remove_inline_code_blocks
from .models import CitationRef

logger = logging.getLogger(__name__)

CITATION_PATTERN = re.compile(r"\\ref\{([^}]*)\}")
INLINE_REF_PATTERN = re.compile(r"(?<!\$)\$(?!\$)([^$]*?\\ref\{([^}]*)\}[^$]*?)\$(?!\$)")
INLINE_MATH_PATTERN = re.compile(r"(?<!\\)(?<!\$)\$(?!\$)(?! )((?:\\\$|[^$])*?)(?<!\\)(?<! )\$(?!\$)")


def iter_citations_in_line(line: str) -> Iterator[Tuple[re.Match, str]]:
    """Yield ``(match, label)`` for every valid citation in a single line.

    Inline code is blanked before matching, so offsets of the returned
    matches refer to the original line.
    """
    cleaned = remove_inline_code_blocks(line)
    for match in INLINE_REF_PATTERN.finditer(cleaned):
        content = match.group(1)
        # Citations must sit tight against their dollar signs
        if content.startswith(" ") or content.endswith(" "):
            continue
        if content.count("\\ref{") > 1:
            continue
        yield match, match.group(2)


def parse_citations_in_markdown(md: str) -> List[CitationRef]:
    """Parse every inline citation in a document.

    Lines inside fenced code blocks are skipped, as are display math
    (``$$``) spans. Line numbers are 0-based.

    Args:
        md: Markdown text

    Returns:
        List of CitationRef in document order
    """
    if not md.strip():
        return []

    result = []
    in_code_block = False
    in_display_math = False
    for line_num, line in enumerate(md.split("\n")):
        if is_code_block_toggle(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        was_in_display_math = in_display_math
        if count_display_math_delimiters(line) % 2 == 1:
            in_display_math = not in_display_math
        if was_in_display_math or "\\ref{" not in line:
            continue
        for match, label in iter_citations_in_line(line):
            result.append(CitationRef(
                label=label,
                line=line_num,
                full_match=line[match.start():match.end()],
                start=match.start(),
                end=match.end(),
            ))
    return result


def is_valid_citation_form(citation: str, prefix: Optional[str] = None) -> Optional[Tuple[str, int]]:
    """Check that a formula body holds exactly one ``\\ref{}``.

    Args:
        citation: Inline math content without the dollar signs
        prefix: If given, the label must start with it

    Returns:
        ``(label, index)`` of the single reference, or None
    """
    matches = list(CITATION_PATTERN.finditer(citation))
    if len(matches) != 1:
        return None
    label = matches[0].group(1)
    if prefix and not label.strip().startswith(prefix):
        return None
    return label.strip(), matches[0].start()


def create_citation_string(prefix: str, content: Optional[str] = None, with_dollar: bool = True) -> str:
    body = f"\\ref{{{prefix}{content or ''}}}"
    return f"${body}$" if with_dollar else body


def split_citation_label(label: str, prefix: str, multi_delimiter: str) -> List[str]:
    """Strip ``prefix`` from a citation label and split it into tags.

    >>> split_citation_label("eq:1.1, 1.2", "eq:", ",")
    ['1.1', '1.2']
    """
    body = label.strip()
    if prefix and body.startswith(prefix):
        body = body[len(prefix):]
    delimiter = multi_delimiter.strip() or multi_delimiter
    return [tag.strip() for tag in body.split(delimiter) if tag.strip()]
