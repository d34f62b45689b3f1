"""Output converters."""
from .citation_renderer import (
    SpanStyles,
    generate_citation_spans,
    make_print_markdown,
    replace_citations_in_markdown_with_span,
)
from .html_converter import HtmlConverter

__all__ = [
    "HtmlConverter",
    "SpanStyles",
    "generate_citation_spans",
    "make_print_markdown",
    "replace_citations_in_markdown_with_span",
]
