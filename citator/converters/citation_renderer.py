"""Replace inline citations with styled HTML spans for print output.

Printed documents have no citation widgets, so every ``$\\ref{eq:1.1}$`` is
turned into plain inline HTML before the Markdown is rendered.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from ..core.citation_parser import CITATION_PATTERN, INLINE_MATH_PATTERN, split_citation_label
from ..core.images import figure_caption_html, parse_all_images_in_markdown, strip_image_metadata
from ..core.markdown_line import count_display_math_delimiters, is_code_block_toggle, remove_inline_code_blocks
from ..core.tags import combine_continuous_citation_tags, split_continuous_citation_tags, split_file_citation

logger = logging.getLogger(__name__)

CONTAINER_CLASS = "em-math-citation-container-print"
CITATION_CLASS = "em-math-citation-print"


@dataclass
class SpanStyles:
    """Inline styles of rendered citations.

    Attributes:
        citation_color: Text colour of the citation
        font_family: Optional font family
        superscript_color: Colour of the cross-file ``[N]`` marker
    """

    citation_color: str = "#4199df"
    font_family: Optional[str] = None
    superscript_color: Optional[str] = None

    def citation_style(self) -> str:
        style = f"color: {self.citation_color};"
        if self.font_family:
            style += f" font-family: {self.font_family};"
        return style

    def superscript_style(self) -> str:
        return f"font-size: 0.75em; color: {self.superscript_color or self.citation_color};"


def generate_citation_spans(
    tags: Sequence[str],
    file_delimiter: str,
    multi_delimiter: str = ", ",
    citation_format: str = "(#)",
    styles: Optional[SpanStyles] = None,
) -> str:
    """Render a list of tags as a span tree.

    Each tag becomes an inner span showing ``citation_format`` with ``#``
    replaced by the local tag. Cross-file tags such as ``2^1.1`` get a
    ``<sup>[2]</sup>`` marker.
    """
    styles = styles or SpanStyles()
    soup = BeautifulSoup("", "html.parser")
    container = soup.new_tag("span", attrs={"class": CONTAINER_CLASS})

    for i, tag in enumerate(tags):
        if i > 0:
            container.append(multi_delimiter)
        local, cross_file = split_file_citation(tag, file_delimiter)
        span = soup.new_tag("span", attrs={"class": CITATION_CLASS, "style": styles.citation_style()})
        span.append(citation_format.replace("#", local, 1))
        if cross_file is not None:
            sup = soup.new_tag("sup", attrs={"style": styles.superscript_style()})
            sup.append(f"[{cross_file}]")
            span.append(sup)
        container.append(span)

    return str(container)


def _render_line(
    line: str,
    prefix: str,
    range_symbol: Optional[str],
    delimiters: Sequence[str],
    file_delimiter: str,
    multi_delimiter: str,
    render_delimiter: str,
    citation_format: str,
    styles: Optional[SpanStyles],
) -> str:
    cleaned = remove_inline_code_blocks(line)
    replacements = []
    for match in INLINE_MATH_PATTERN.finditer(cleaned):
        ref = CITATION_PATTERN.fullmatch(match.group(1))
        if not ref or not ref.group(1).startswith(prefix):
            continue
        tags = split_citation_label(ref.group(1), prefix, multi_delimiter)
        if range_symbol:
            tags = split_continuous_citation_tags(tags, range_symbol, delimiters, file_delimiter)
            tags = combine_continuous_citation_tags(tags, range_symbol, delimiters, file_delimiter)
        if not tags:
            continue
        spans = generate_citation_spans(tags, file_delimiter, render_delimiter, citation_format, styles)
        replacements.append((match.start(), match.end(), spans))

    for start, end, spans in reversed(replacements):
        line = line[:start] + spans + line[end:]
    return line


def replace_citations_in_markdown_with_span(
    md: str,
    prefix: str,
    range_symbol: Optional[str],
    delimiters: Sequence[str],
    file_delimiter: str,
    multi_delimiter: str = ",",
    citation_format: str = "(#)",
    styles: Optional[SpanStyles] = None,
    render_delimiter: str = ", ",
) -> str:
    """Replace inline-math citations with span trees.

    Citations in fenced code, inline code or display math are kept as they
    are, as are formulas holding anything besides a single ``\\ref{}``.

    Args:
        md: Markdown text
        prefix: Citation prefix to render (``eq:``)
        range_symbol: Range marker, or None to render tags one by one
        delimiters: Numbering-level delimiters used for ranges
        file_delimiter: Cross-file delimiter
        multi_delimiter: Separator between tags in the source label
        citation_format: Display template with one ``#``
        styles: Inline styles
        render_delimiter: Separator between rendered tags

    Returns:
        Markdown with inline HTML citations
    """
    if not md.strip():
        return md

    lines = md.split("\n")
    in_code_block = False
    in_display_math = False
    for i, line in enumerate(lines):
        if is_code_block_toggle(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        toggles = count_display_math_delimiters(line) % 2 == 1
        if not in_display_math and "\\ref{" in line:
            lines[i] = _render_line(
                line, prefix, range_symbol, delimiters, file_delimiter,
                multi_delimiter, render_delimiter, citation_format, styles,
            )
        if toggles:
            in_display_math = not in_display_math
    return "\n".join(lines)


def add_figure_captions(md: str, fig_prefix: str, fig_format: str) -> str:
    """Strip figure metadata from tagged image lines and add captions below them."""
    if not md.strip():
        return md
    figures = {img.line: img for img in parse_all_images_in_markdown(md, fig_prefix) if img.tag}
    if not figures:
        return md

    result: List[str] = []
    for i, line in enumerate(md.split("\n")):
        figure = figures.get(i)
        if figure is None:
            result.append(line)
            continue
        result.append(strip_image_metadata(line, fig_prefix))
        result.extend(figure_caption_html(figure, fig_format))
        result.append("")
    return "\n".join(result)


def make_print_markdown(md: str, config) -> str:
    """Build the print version of a document.

    Citations are rendered per prefix: equations, figures, then each callout
    type. Figure captions are added last.

    Args:
        md: Markdown text
        config: Citator configuration

    Returns:
        Markdown with citations as inline HTML
    """
    styles = SpanStyles(citation_color=config.citation_color_in_pdf)
    options = dict(
        range_symbol=config.effective_range_symbol,
        delimiters=config.delimiters,
        file_delimiter=config.effective_file_delimiter,
        multi_delimiter=config.multi_citation_delimiter,
        styles=styles,
        render_delimiter=config.multi_citation_delimiter_render,
    )
    result = replace_citations_in_markdown_with_span(
        md, config.citation_prefix, citation_format=config.citation_format, **options
    )
    result = replace_citations_in_markdown_with_span(
        result, config.fig_citation_prefix, citation_format=config.fig_citation_format, **options
    )
    for callout in config.callout_citation_prefixes:
        result = replace_citations_in_markdown_with_span(
            result, callout.prefix, citation_format=callout.format, **options
        )
    result = add_figure_captions(result, config.fig_citation_prefix, config.fig_citation_format)
    logger.debug("Built print markdown")
    return result
