"""Footnotes that link to other notes: ``[^1]: [[path|label]]``.

Cross-file citations refer to another document through the number of a
footnote like this, e.g. ``$\\ref{eq:1^2.3}$`` cites tag ``2.3`` of the file
footnote ``1`` points to.
"""
import posixpath
import re
from typing import List, Optional

from .markdown_line import is_code_block_toggle
from .models import FootNote

FOOTNOTE_LINK_PATTERN = re.compile(r"^\[(\^[^\]]+)\]:\s*\[\[([^|\]]+)(?:\|([^\]]*))?\]\]")


def _file_label(path: str) -> Optional[str]:
    name = posixpath.basename(path)
    return name or None


def parse_footnotes_in_markdown(md: str) -> List[FootNote]:
    """Collect wikilink footnotes outside fenced code blocks.

    A missing or blank alias falls back to the file name of the link.
    """
    result = []
    in_code_block = False
    for line in md.split("\n"):
        if not line.startswith("[^"):
            if is_code_block_toggle(line):
                in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        match = FOOTNOTE_LINK_PATTERN.match(line)
        if not match:
            continue
        path = match.group(2)
        alias = (match.group(3) or "").strip()
        result.append(FootNote(
            num=match.group(1)[1:],
            path=path,
            label=alias or _file_label(path),
        ))
    return result


def next_footnote_number(footnotes: List[FootNote]) -> str:
    """One more than the largest numeric footnote number."""
    numbers = [int(fn.num) for fn in footnotes if fn.num.isdigit()]
    return str(max(numbers, default=0) + 1)


def append_footnote(md: str, num: str, path: str) -> str:
    """Append ``[^num]: [[path]]`` to a document."""
    separator = "\n" if md.endswith("\n") else "\n\n"
    return f"{md}{separator}[^{num}]: [[{path}]]"
