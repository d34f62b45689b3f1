"""Display equations: tags, parsing and structural checks."""
import re
from typing import List, Optional, Tuple

from .markdown_line import EQ_BRACE_PATTERN, parse_markdown_line
from .models import EquationMatch

LATEX_TAG_PATTERN = re.compile(r"\\tag\{\s*([^}]*?)\s*\}")
TYPST_TAG_PATTERN = re.compile(r"#label\(\s*\"([^\"]*?)\"\s*\)")


def create_equation_tag_string(label: str, typst: bool = False) -> str:
    """``\\tag{label}``, or ``#label("label")`` in Typst mode."""
    return f'#label("{label}")' if typst else f"\\tag{{{label}}}"


def get_equation_tag(text: str, typst: bool = False) -> Optional[str]:
    """Return the first non-empty tag label in ``text``, trimmed."""
    pattern = TYPST_TAG_PATTERN if typst else LATEX_TAG_PATTERN
    match = pattern.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def trim_equation_raw(equation: str) -> str:
    """Strip the surrounding ``$$`` and adjacent whitespace."""
    return re.sub(r"\s*\$\$\s*$", "", re.sub(r"^\s*\$\$\s*", "", equation))


def parse_equation_tag(equation: str, typst: bool = False) -> Tuple[str, Optional[str]]:
    """Split a raw ``$$...$$`` equation into its body and its tag.

    The returned body keeps the whitespace and newlines that sat between the
    dollar signs, so that re-wrapping it preserves the block's layout.

    Returns:
        ``(body_without_tag, tag_or_None)``
    """
    body = equation.strip()
    if body.startswith("$$"):
        body = body[2:]
    if body.endswith("$$"):
        body = body[:-2]

    pattern = TYPST_TAG_PATTERN if typst else LATEX_TAG_PATTERN
    tag = get_equation_tag(body, typst)
    # A tag on a line of its own takes the line with it
    body = re.sub(rf"^[ \t]*{pattern.pattern}[ \t]*\n", "", body, flags=re.MULTILINE)
    body = re.sub(rf"[ \t]*{pattern.pattern}", "", body)
    return body, tag


def format_equation(body: str, tag_string: str = "") -> str:
    """Wrap an equation body and tag back into ``$$...$$``.

    A body that ended with a newline keeps the closing ``$$`` on its own line.
    """
    content = body.rstrip()
    if body.endswith("\n"):
        content += f" {tag_string}\n"
    else:
        content += f" {tag_string} "
    return f"$${content}$$"


def detect_illegal_equation(eq_str: str) -> int:
    """Find a misplaced ``$$`` inside a buffered equation block.

    Text after the closing ``$$``, or any ``$$`` between the first and the
    last one, makes the block illegal.

    Returns:
        0-based line offset (within ``eq_str``) of the offending ``$$``, or -1
    """
    indexes = [m.start() for m in EQ_BRACE_PATTERN.finditer(eq_str)]
    if len(indexes) < 2:
        return -1
    first, last = indexes[0], indexes[-1]
    if eq_str[last + 2:].strip():
        return eq_str[:last].count("\n")
    for index in indexes:
        if first < index < last:
            return eq_str[:index].count("\n")
    return -1


def parse_equations_in_markdown(md: str, parse_quotes: bool = True) -> List[EquationMatch]:
    """Collect all display equations in a document.

    Unclosed blocks run to the end of the document. ``content`` is the body
    with the ``$$`` delimiters removed but the tag kept.
    """
    if not md.strip():
        return []

    equations = []
    in_code_block = False
    buffer: List[str] = []
    block_start = -1
    block_quoted = False
    lines = md.split("\n")

    def flush(end_line: int) -> None:
        raw = "\n".join(buffer)
        equations.append(EquationMatch(
            raw=raw,
            content=trim_equation_raw(raw),
            line_start=block_start,
            line_end=end_line,
            tag=get_equation_tag(raw),
            in_quote=block_quoted,
        ))

    for i, line in enumerate(lines):
        env = parse_markdown_line(line, parse_quotes, in_code_block)
        if env.is_code_block_toggle:
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue

        if buffer:
            buffer.append(env.processed_content.strip())
            if env.is_equation_block_end:
                flush(i)
                buffer = []
            continue

        match = env.single_line_equation_match
        if match is not None:
            raw = env.processed_content[match.start():match.end()].strip()
            equations.append(EquationMatch(
                raw=raw,
                content=env.processed_content[match.start(1):match.end(1)].strip(),
                line_start=i,
                line_end=i,
                tag=get_equation_tag(raw),
                in_quote=env.in_quote,
            ))
        elif env.is_equation_block_start:
            buffer = [env.processed_content.strip()]
            block_start = i
            block_quoted = env.in_quote

    if buffer:
        flush(len(lines) - 1)
    return equations
