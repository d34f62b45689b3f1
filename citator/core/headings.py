"""Heading extraction and relative heading depth."""
import logging
from typing import List

from .markdown_line import parse_markdown_line
from .models import Heading

logger = logging.getLogger(__name__)


def parse_headings_in_markdown(content: str, parse_quotes: bool = False) -> List[Heading]:
    """Return every heading outside fenced code blocks.

    Args:
        content: Markdown text
        parse_quotes: Also accept headings inside blockquotes. Auto-numbering
            passes its own flag so the list lines up with the headings its
            walk encounters.
    """
    headings = []
    in_code_block = False
    for i, line in enumerate(content.split("\n")):
        env = parse_markdown_line(line, parse_quotes, in_code_block)
        if env.is_code_block_toggle:
            in_code_block = not in_code_block
            continue
        if in_code_block or env.heading_match is None:
            continue
        headings.append(Heading(
            level=len(env.heading_match.group(1)),
            text=env.heading_match.group(2),
            line=i,
        ))
    return headings


def relative_heading_level(headings: List[Heading], index: int) -> int:
    """Nesting depth of ``headings[index]`` within the actual heading sequence.

    ``# A / ### B`` gives B a relative level of 2. Returns 0 for an invalid
    index.
    """
    if not headings or index < 0 or index >= len(headings):
        logger.debug(f"Invalid heading index {index} in {len(headings)} headings")
        return 0
    stack: List[int] = []
    for heading in headings[:index + 1]:
        while stack and stack[-1] >= heading.level:
            stack.pop()
        stack.append(heading.level)
    return len(stack)
