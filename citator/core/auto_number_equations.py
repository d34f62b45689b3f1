"""Auto-numbering of display equations."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..exceptions import IllegalEquationError
from .auto_number import (
    AutoNumberConfigs,
    generate_new_tag,
    generate_next_tag,
    new_numbering_state,
    process_code_block_and_heading,
)
from .equations import (
    create_equation_tag_string,
    detect_illegal_equation,
    format_equation,
    parse_equation_tag,
)
from .headings import parse_headings_in_markdown
from .markdown_line import EQ_BRACE_PATTERN, SINGLE_LINE_EQ_PATTERN, parse_markdown_line
from .models import AutoNumberingState, AutoNumberResult

logger = logging.getLogger(__name__)


@dataclass
class EquationAutoNumberConfigs(AutoNumberConfigs):
    """Auto-numbering options for equations.

    Attributes:
        enable_typst_mode: Write ``#label("N")`` instead of ``\\tag{N}``
    """

    enable_typst_mode: bool = False


def _illegal(message: str, line: int) -> IllegalEquationError:
    logger.warning(f"Illegal $$ in equation at line {line}. Please fix it first.")
    return IllegalEquationError(
        f"Markdown parsing error: {message} around line {line}. "
        f"Auto-numbering stopped to avoid corrupting equation tags.",
        line=line,
    )


class _EquationNumberer:
    """Numbers one equation at a time and records the tag mapping."""

    def __init__(self, state: AutoNumberingState, configs: EquationAutoNumberConfigs):
        self.state = state
        self.configs = configs
        self.tag_mapping: Dict[str, str] = {}

    def number(self, raw: str) -> Optional[str]:
        """Return the renumbered equation, or None to leave it untouched."""
        typst = self.configs.enable_typst_mode
        body, old_tag = parse_equation_tag(raw, typst)
        new_label = generate_new_tag(self.state, old_tag, self.configs.enable_tagged_only)
        if new_label is None:
            return None
        if old_tag and old_tag not in self.tag_mapping:
            self.tag_mapping[old_tag] = new_label
        return format_equation(body, create_equation_tag_string(new_label, typst))


def auto_number_equations(content: str, configs: EquationAutoNumberConfigs) -> AutoNumberResult:
    """Renumber every display equation in a document.

    Citations are not touched; feed ``tag_mapping`` of the result to the
    rewrite engine for that.

    Args:
        content: Markdown text
        configs: Numbering options

    Returns:
        AutoNumberResult with the rewritten text and old->new tag mapping

    Raises:
        IllegalEquationError: If an equation contains a stray ``$$``. The
            document is left unmodified.
    """
    lines = content.split("\n")
    headings = parse_headings_in_markdown(content, configs.parse_quotes)
    state = new_numbering_state(configs)
    numberer = _EquationNumberer(state, configs)

    result: List[str] = []
    in_code_block = False
    heading_index = 0
    block: List[str] = []
    block_source: List[str] = []
    block_start = -1
    quote_prefix = ""

    def emit_block() -> None:
        illegal = detect_illegal_equation("\n".join(block))
        if illegal >= 0:
            raise _illegal("Illegal nested $$ in equation block", block_start + illegal + 1)
        numbered = numberer.number("\n".join(block))
        if numbered is None:
            result.extend(block_source)
        else:
            result.append("\n".join(quote_prefix + part for part in numbered.split("\n")))

    for i, line in enumerate(lines):
        env = parse_markdown_line(line, configs.parse_quotes, in_code_block)
        step = process_code_block_and_heading(
            env, in_code_block, state, heading_index, headings, configs.numbering_type
        )
        in_code_block, heading_index = step.in_code_block, step.heading_index
        if step.should_continue:
            result.append(line)
            continue

        quote_prefix = "> " * env.quote_depth

        if block:
            block.append(env.processed_content.strip())
            block_source.append(line)
            if env.is_equation_block_end:
                emit_block()
                block, block_source = [], []
            continue

        match = env.single_line_equation_match
        if match is not None:
            if EQ_BRACE_PATTERN.search(match.group(1)):
                raise _illegal("Illegal nested $$ in single-line equation", i + 1)
            raw = env.processed_content[match.start():match.end()]
            numbered = numberer.number(raw)
            result.append(line if numbered is None else quote_prefix + numbered)
            continue

        if env.is_equation_block_start:
            block = [env.processed_content.strip()]
            block_source = [line]
            block_start = i
            continue

        result.append(line)

    # Unclosed blocks run to the end of the document
    if block:
        emit_block()

    return AutoNumberResult(md="\n".join(result), tag_mapping=numberer.tag_mapping)


def _cursor_in_single_line_equation(line: str, ch: int) -> bool:
    match = SINGLE_LINE_EQ_PATTERN.match(line)
    return match is not None and match.start() <= ch <= match.end()


def get_auto_number_at_cursor(
    content: str,
    line: int,
    ch: int,
    configs: EquationAutoNumberConfigs,
) -> Optional[str]:
    """Return the tag auto-numbering would give the equation under a cursor.

    Args:
        content: Markdown text
        line: 0-based cursor line
        ch: 0-based cursor column
        configs: Numbering options

    Returns:
        The tag, or None if the cursor is not inside a display equation (or
        the equation would not be numbered)
    """
    lines = content.split("\n")
    if line < 0 or line >= len(lines):
        logger.debug(f"Cursor line {line} outside document of {len(lines)} lines")
        return None

    headings = parse_headings_in_markdown(content, configs.parse_quotes)
    state = new_numbering_state(configs)
    in_code_block = False
    in_block = False
    heading_index = 0
    buffer: List[str] = []
    new_tag: Optional[str] = None

    for i in range(line + 1):
        text = lines[i]
        env = parse_markdown_line(text, configs.parse_quotes, in_code_block)
        step = process_code_block_and_heading(
            env, in_code_block, state, heading_index, headings, configs.numbering_type
        )
        in_code_block, heading_index = step.in_code_block, step.heading_index
        if step.should_continue:
            continue

        if in_block:
            buffer.append(env.processed_content.strip())
            if i == line:
                # Still inside the block: its tag is the next one
                return generate_next_tag(state)
            if env.is_equation_block_end:
                in_block = False
                _, old_tag = parse_equation_tag("\n".join(buffer), configs.enable_typst_mode)
                new_tag = generate_new_tag(state, old_tag, configs.enable_tagged_only)
                buffer = []
        elif env.single_line_equation_match is not None:
            _, old_tag = parse_equation_tag(
                env.single_line_equation_match.group(0), configs.enable_typst_mode
            )
            new_tag = generate_new_tag(state, old_tag, configs.enable_tagged_only)
        elif env.is_equation_block_start:
            buffer = [env.processed_content.strip()]
            in_block = True

        if i != line:
            continue
        if env.single_line_equation_match is not None or _cursor_in_single_line_equation(text, ch):
            return new_tag
        if env.is_equation_block_start or env.is_equation_block_end:
            bracket = text.find("$$")
            if bracket == -1:
                return None
            if env.is_equation_block_start and in_block:
                return generate_next_tag(state) if ch >= bracket + 2 else None
            return new_tag if ch <= bracket else None
        return None
    return None
