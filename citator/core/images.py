"""Image embeds and their figure metadata.

Two embed styles carry metadata as ``|``-separated parts::

    ![[plot.png|fig:1.2|title:Results|desc:Raw data|400]]
    ![alt|fig:1.2|title:Results|400](plot.png)

A trailing purely numeric part is a display width and always stays last.
"""
import html
import re
from typing import List, Optional

from .markdown_line import get_quote_prefix, is_code_block_toggle, process_quote_line
from .models import ImageMatch

WIKILINK_IMAGE_PATTERN = re.compile(r"^!\[\[([^|\]]+)(?:\|([^\]]*))?\]\]$")
MARKDOWN_IMAGE_PATTERN = re.compile(r"^!\[([^\]]*)\]\(([^)]+)\)$")
_WIDTH_PATTERN = re.compile(r"^\d+$")


def _split_meta(meta: str) -> List[str]:
    return [part.strip() for part in meta.split("|") if part.strip()]


def parse_image_line(line: str, line_no: int, fig_prefix: str) -> Optional[ImageMatch]:
    """Parse a line holding a single image embed.

    Args:
        line: Raw line, possibly quoted
        line_no: 0-based line index stored on the match
        fig_prefix: Figure citation prefix (``fig:``)

    Returns:
        ImageMatch, or None if the line is not exactly one image embed
    """
    quote = process_quote_line(line)
    content = quote.content

    match = WIKILINK_IMAGE_PATTERN.match(content)
    if match:
        kind, path, alt = "wikilink", match.group(1).strip(), ""
        parts = _split_meta(match.group(2) or "")
    else:
        match = MARKDOWN_IMAGE_PATTERN.match(content)
        if not match:
            return None
        kind, path = "markdown", match.group(2).strip()
        parts = _split_meta(match.group(1))
        alt = ""

    image = ImageMatch(raw=line, kind=kind, path=path, in_quote=quote.is_quote, line=line_no)
    for part in parts:
        if fig_prefix and part.startswith(fig_prefix):
            image.tag = part[len(fig_prefix):].strip() or None
        elif part.startswith("title:"):
            image.title = part[len("title:"):].strip()
        elif part.startswith("desc:"):
            image.desc = part[len("desc:"):].strip()
        elif kind == "markdown" and not alt and not _WIDTH_PATTERN.match(part):
            alt = part
    image.alt = alt
    return image


def parse_all_images_in_markdown(md: str, fig_prefix: str) -> List[ImageMatch]:
    """Every image embed outside fenced code blocks."""
    images = []
    in_code_block = False
    for i, line in enumerate(md.split("\n")):
        if is_code_block_toggle(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        image = parse_image_line(line, i, fig_prefix)
        if image is not None:
            images.append(image)
    return images


def replace_image_tag(image: ImageMatch, new_label: str, fig_prefix: str) -> str:
    """Rebuild an image line with ``new_label`` as its only figure tag.

    ``title:``, ``desc:`` and other metadata are kept in order, old tags are
    dropped, and a trailing width stays last.
    """
    quote_prefix = get_quote_prefix(image.raw) if image.in_quote else ""
    content = image.raw[len(quote_prefix):].strip()

    if image.kind == "wikilink":
        match = WIKILINK_IMAGE_PATTERN.match(content)
        if not match:
            return image.raw
        meta = match.group(2) or ""
    else:
        match = MARKDOWN_IMAGE_PATTERN.match(content)
        if not match:
            return image.raw
        meta = match.group(1)

    parts = _split_meta(meta)
    width = parts.pop() if parts and _WIDTH_PATTERN.match(parts[-1]) else None
    kept = [p for p in parts if not (fig_prefix and p.startswith(fig_prefix))]
    kept.append(new_label)
    if width is not None:
        kept.append(width)

    if image.kind == "wikilink":
        rebuilt = f"![[{match.group(1).strip()}|{'|'.join(kept)}]]"
    else:
        rebuilt = f"![{'|'.join(kept)}]({match.group(2).strip()})"
    return quote_prefix + rebuilt


def strip_image_metadata(line: str, fig_prefix: str) -> str:
    """Remove figure metadata from an image line, keeping the plain embed.

    >>> strip_image_metadata("![[a.png|fig:1|title:T]]", "fig:")
    '![[a.png]]'
    """
    match = WIKILINK_IMAGE_PATTERN.match(line)
    if match:
        return f"![[{match.group(1).strip()}]]"
    match = MARKDOWN_IMAGE_PATTERN.match(line)
    if match:
        metadata = tuple(p for p in (fig_prefix, "title:", "desc:") if p)
        alt = [p.strip() for p in match.group(1).split("|") if not p.strip().startswith(metadata)]
        return f"![{alt[0] if alt else ''}]({match.group(2).strip()})"
    return line


def figure_caption_html(image: ImageMatch, fig_format: str) -> List[str]:
    """Centered caption lines (number, title and description) for a figure."""
    caption = fig_format.replace("#", image.tag or "", 1)
    if image.title:
        caption = f"{caption}: {image.title}"
    lines = [f"<center><strong>{html.escape(caption)}</strong></center>"]
    if image.desc:
        lines.append(f"<center><small>{html.escape(image.desc)}</small></center>")
    return lines
