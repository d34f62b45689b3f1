"""Line-level Markdown classification.

Every scanner in Citator walks a document one line at a time and threads a
running ``in_code_block`` flag. :func:`parse_markdown_line` is the single place
that decides what a line is: fenced-code toggle, heading, single-line or
multi-line display equation, image, and how deeply it is quoted.
"""
import re

from .models import MarkdownLineEnvironment, QuoteLineMatch

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*)$")
CODE_BLOCK_START_PATTERN = re.compile(r"^\s*(?:>+\s*)*```")
QUOTE_PATTERN = re.compile(r"^(\s*(?:>\s*)+)(\[![^\]]*\])?\s*(.*)")
QUOTE_PREFIX_PATTERN = re.compile(r"^((?:\s*>)+\s?)")

SINGLE_LINE_EQ_PATTERN = re.compile(r"^\s*\$\$(?!\$)([\s\S]*?)(?<!\$)\$\$\s*$")
EQ_BLOCK_START_PATTERN = re.compile(r"^\$\$(?!\$)")
EQ_BLOCK_END_PATTERN = re.compile(r"(?<!\\)\$\$(?!\$)$")
EQ_BRACE_PATTERN = re.compile(r"(?<!\\)\$\$")

# Sentinel used as file delimiter when cross-file citation is switched off
DISABLED_DELIMITER = "§¶∞&#&@∸∹≑≒≓≌≍≎≏⋤⋥≔≕≖≗≘≙≚≛≜≝≞≟≠≇≈≉≊≋⋦⋧⋨⋩⋪⋫⋬⋭⋮⋯⋰⋱"


def is_code_block_toggle(line: str) -> bool:
    """Return True if the line opens or closes a fenced code block.

    A fence may be preceded by quote markers. Lines carrying an even number of
    triple backticks (e.g. an inline ```x``` span) open and close on the same
    line and do not toggle.
    """
    if not CODE_BLOCK_START_PATTERN.match(line):
        return False
    return line.count("```") % 2 == 1


def _is_escaped(line: str, index: int) -> bool:
    backslashes = 0
    j = index - 1
    while j >= 0 and line[j] == "\\":
        backslashes += 1
        j -= 1
    return backslashes % 2 == 1


def remove_inline_code_blocks(line: str) -> str:
    """Blank inline code spans (and their backticks) to spaces.

    Column offsets are preserved, so matches found in the cleaned line can be
    applied to the original one.
    """
    result = []
    in_code = False
    for i, char in enumerate(line):
        if char == "`" and not _is_escaped(line, i):
            in_code = not in_code
            result.append(" ")
        elif in_code:
            result.append(" ")
        else:
            result.append(char)
    return "".join(result)


def is_in_inline_code(line: str, pos: int) -> bool:
    """Return True if ``pos`` lies inside an inline code span (unclosed spans count)."""
    if pos < 0 or pos > len(line):
        return False
    in_code = False
    start = -1
    for i, char in enumerate(line):
        if char != "`" or _is_escaped(line, i):
            continue
        if in_code:
            if start <= pos <= i - 1:
                return True
            in_code = False
        else:
            start = i + 1
            in_code = True
    return in_code and pos >= start


def count_display_math_delimiters(line: str) -> int:
    """Count the ``$$`` in a line that open or close display math.

    Inline code is ignored. A ``$$`` with text directly on both sides, as in
    ``$m$$\\ref{eq:1}$``, joins two inline formulas and is not counted
    unless it sits at the start or end of the line.
    """
    cleaned = remove_inline_code_blocks(line)
    stripped = cleaned.strip()
    offset = len(cleaned) - len(cleaned.lstrip())
    count = 0
    for match in EQ_BRACE_PATTERN.finditer(cleaned):
        start, end = match.start() - offset, match.end() - offset
        if start == 0 or end == len(stripped):
            count += 1
            continue
        before, after = stripped[start - 1], stripped[end]
        if before.isspace() or after.isspace():
            count += 1
    return count


def process_quote_line(line: str) -> QuoteLineMatch:
    """Strip blockquote markers and a leading callout marker from a line.

    The callout marker (``[!note]``) is kept in front of the content, separated
    by a single space.
    """
    match = QUOTE_PATTERN.match(line)
    if match:
        markers, callout, content = match.group(1), match.group(2) or "", (match.group(3) or "").strip()
        depth = markers.count(">")
        return QuoteLineMatch(
            content=f"{callout} {content}" if callout else content,
            quote_depth=depth,
            is_quote=depth > 0,
        )
    return QuoteLineMatch(content=line.strip(), quote_depth=0, is_quote=False)


def get_quote_prefix(line: str) -> str:
    """Return the literal quote marker prefix of a line (e.g. ``"> > "``)."""
    match = QUOTE_PREFIX_PATTERN.match(line)
    return match.group(1) if match else ""


def parse_markdown_line(
    line: str,
    parse_quotes: bool = True,
    in_code_block: bool = False,
) -> MarkdownLineEnvironment:
    """Classify a single Markdown line.

    Args:
        line: Raw line text
        parse_quotes: Strip blockquote markers before classifying
        in_code_block: Whether the caller is inside a fenced code block

    Returns:
        MarkdownLineEnvironment describing the line
    """
    if parse_quotes:
        quote = process_quote_line(line)
    else:
        quote = QuoteLineMatch(content=line.strip(), quote_depth=0, is_quote=False)
    content = quote.content

    toggle = is_code_block_toggle(content)
    if in_code_block and not toggle:
        return MarkdownLineEnvironment(
            processed_content=content,
            cleaned_line=content,
            in_quote=quote.is_quote,
            quote_depth=quote.quote_depth,
        )

    cleaned = remove_inline_code_blocks(content)
    trimmed = cleaned.strip()

    return MarkdownLineEnvironment(
        processed_content=content,
        cleaned_line=cleaned,
        in_quote=quote.is_quote,
        quote_depth=quote.quote_depth,
        heading_match=HEADING_PATTERN.match(cleaned),
        is_code_block_toggle=toggle,
        single_line_equation_match=SINGLE_LINE_EQ_PATTERN.match(cleaned),
        is_equation_block_start=bool(EQ_BLOCK_START_PATTERN.search(trimmed)),
        is_equation_block_end=bool(EQ_BLOCK_END_PATTERN.search(trimmed)),
        is_image=trimmed.startswith("!"),
    )


def validate_delimiter(delimiter: str) -> bool:
    """Delimiters may only use punctuation, and never ``{``, ``}`` or ``$``."""
    if not re.fullmatch(r"[^a-zA-Z0-9\s]+", delimiter):
        return False
    return not re.search(r"[{}$]", delimiter)


def validate_letter_prefix(prefix: str) -> bool:
    return bool(re.fullmatch(r"[a-zA-Z]+", prefix))


def validate_display_format(fmt: str) -> bool:
    """A display format must contain exactly one ``#`` placeholder."""
    return fmt.count("#") == 1


def contains_safe_chars(text: str) -> bool:
    """True if ``text`` is not blank and has no ``{``, ``}`` or ``$``."""
    return not any(c in text for c in "{}$") and bool(text.strip())
