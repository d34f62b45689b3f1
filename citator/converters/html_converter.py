"""Markdown to HTML converter for printable notes."""
import logging
import re

import markdown

from ..exceptions import ConversionError

logger = logging.getLogger(__name__)

WIKILINK_EMBED_PATTERN = re.compile(r"^(\s*)!\[\[([^|\]]+)(?:\|[^\]]*)?\]\]\s*$", re.MULTILINE)


class HtmlConverter:
    """Convert print Markdown to HTML with document styling."""

    def __init__(self, title: str = "Document"):
        """Initialize HTML converter.

        Args:
            title: Text of the ``<title>`` element
        """
        self.title = title

    def to_html(self, markdown_text: str, include_css: bool = True) -> str:
        """Render markdown text to an HTML string.

        Raises:
            ConversionError: If conversion fails
        """
        try:
            html_content = markdown.markdown(
                self._embeds_to_images(markdown_text),
                extensions=[
                    'extra',
                    'sane_lists',
                    'smarty',
                    'toc',
                ],
            )
        except Exception as e:
            logger.error(f"HTML conversion failed: {e}")
            raise ConversionError(f"Failed to convert to HTML: {e}")

        if include_css:
            return self._create_html_document(html_content)
        return html_content

    def convert(self, markdown_text: str, output_path: str, include_css: bool = True) -> str:
        """Convert markdown text to HTML file.

        Args:
            markdown_text: Markdown content
            output_path: Path to save HTML file
            include_css: Include default print CSS styling

        Returns:
            Path to created HTML file

        Raises:
            ConversionError: If conversion fails
        """
        logger.info(f"Converting markdown to HTML: {output_path}")

        html_doc = self.to_html(markdown_text, include_css)
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html_doc)
        except OSError as e:
            logger.error(f"HTML conversion failed: {e}")
            raise ConversionError(f"Failed to write HTML: {e}")

        logger.info(f"HTML saved: {output_path}")
        return output_path

    def _embeds_to_images(self, markdown_text: str) -> str:
        """``![[a.png|...]]`` embeds become plain Markdown images."""
        return WIKILINK_EMBED_PATTERN.sub(
            lambda m: f"{m.group(1)}![]({m.group(2).strip().replace(' ', '%20')})", markdown_text
        )

    def _create_html_document(self, content: str) -> str:
        """Wrap content in full HTML document with CSS."""
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.title}</title>
    <style>
        {self._get_print_css()}
    </style>
</head>
<body>
    <div class="container">
        {content}
    </div>
</body>
</html>"""

    def _get_print_css(self) -> str:
        """Get CSS styling for printed notes."""
        return """
        body {
            font-family: 'Times New Roman', Times, serif;
            font-size: 12pt;
            line-height: 1.6;
            color: #333;
            background-color: #fff;
            margin: 0;
            padding: 0;
        }

        .container {
            max-width: 800px;
            margin: 0 auto;
            padding: 2cm;
        }

        h1, h2, h3, h4, h5, h6 {
            font-weight: bold;
            margin-top: 1.5em;
            margin-bottom: 0.5em;
            color: #000;
        }

        blockquote {
            margin: 1em 2em;
            padding: 0.5em 1em;
            border-left: 3px solid #ccc;
        }

        code, pre {
            font-family: 'Courier New', Courier, monospace;
            font-size: 10pt;
            background-color: #f4f4f4;
        }

        pre {
            padding: 1em;
            overflow-x: auto;
        }

        img {
            max-width: 100%;
            height: auto;
            display: block;
            margin: 1em auto 0.5em;
        }

        center {
            display: block;
            text-align: center;
        }

        .em-math-citation-print {
            white-space: nowrap;
        }

        .em-math-citation-print sup {
            vertical-align: super;
        }

        @media print {
            .container {
                max-width: none;
                margin: 0;
            }

            h1, h2 {
                page-break-after: avoid;
            }

            pre, blockquote, img {
                page-break-inside: avoid;
            }
        }
        """
