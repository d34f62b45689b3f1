"""Citable callouts: ``> [!table:1.1]`` blocks.

A callout block is a run of quote lines at one depth whose first line opens
with ``[!<prefix><tag>]`` for a configured prefix. Anything after a ``|`` in
the header (``[!table:1.1|wide]``) is display metadata and not part of the tag.
"""
import logging
import re
from typing import List, Optional, Sequence, Tuple

from .markdown_line import parse_markdown_line
from .models import CalloutCitationPrefix, CalloutMatch

logger = logging.getLogger(__name__)

CALLOUT_HEADER_PATTERN = re.compile(r"^\[!([^\]]+)\]")


def parse_callout_citation(
    text: str,
    prefixes: Sequence[CalloutCitationPrefix],
) -> Optional[Tuple[CalloutCitationPrefix, str]]:
    """Match a callout header against the configured prefixes.

    Args:
        text: Line content with quote markers removed
        prefixes: Citable callout types

    Returns:
        ``(prefix, tag)`` for the first prefix with a non-empty tag, or None
    """
    match = CALLOUT_HEADER_PATTERN.match(text)
    if not match:
        return None
    header = match.group(1).split("|")[0].strip()
    for prefix in prefixes:
        if header.startswith(prefix.prefix):
            tag = header[len(prefix.prefix):].strip()
            if tag:
                return prefix, tag
    return None


def _build_callout(
    lines: List[str],
    prefix: CalloutCitationPrefix,
    tag: str,
    start: int,
    end: int,
    depth: int,
) -> CalloutMatch:
    body = [parse_markdown_line(line).processed_content for line in lines[1:]]
    return CalloutMatch(
        raw="\n".join(lines),
        type=prefix.type,
        tag=tag,
        label=f"{prefix.prefix}{tag}",
        prefix=prefix.prefix,
        content="\n".join(body).strip(),
        line_start=start,
        line_end=end,
        quote_depth=depth,
    )


def parse_all_callouts_in_markdown(
    md: str,
    prefixes: Sequence[CalloutCitationPrefix],
) -> List[CalloutMatch]:
    """Collect every citable callout outside fenced code blocks.

    A block ends at the first line that is not a quote line of the header's
    depth; an unclosed block runs to the end of the document.
    """
    if not md.strip() or not prefixes:
        return []

    callouts = []
    lines = md.split("\n")
    in_code_block = False
    block: List[str] = []
    header: Optional[Tuple[CalloutCitationPrefix, str]] = None
    start = depth = 0

    for i, line in enumerate(lines):
        env = parse_markdown_line(line, True, in_code_block)
        if env.is_code_block_toggle:
            in_code_block = not in_code_block

        if header is not None:
            if env.in_quote and env.quote_depth == depth:
                block.append(line)
                continue
            callouts.append(_build_callout(block, header[0], header[1], start, i - 1, depth))
            header = None

        if in_code_block or env.is_code_block_toggle or not env.in_quote:
            continue
        header = parse_callout_citation(env.processed_content, prefixes)
        if header is not None:
            block = [line]
            start, depth = i, env.quote_depth

    if header is not None:
        callouts.append(_build_callout(block, header[0], header[1], start, len(lines) - 1, depth))

    logger.debug(f"Parsed {len(callouts)} callout(s)")
    return callouts
