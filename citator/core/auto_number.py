"""Shared state machine for auto-numbering equations and figures.

Both numbering walks use the same heading bookkeeping: a counter per heading
level, an object counter reset under each numbered heading, and a separate
counter for objects that appear before the first heading.
"""
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from .headings import relative_heading_level
from .models import AutoNumberingState, AutoNumberingType, Heading, MarkdownLineEnvironment


@dataclass
class AutoNumberConfigs:
    """Options that shape generated tags.

    Attributes:
        numbering_type: Relative (nesting depth) or Absolute (``#`` count)
        max_depth: Number of heading levels that contribute to a tag
        delimiter: Separator between tag segments
        no_heading_prefix: Prefix for objects before the first heading
        global_prefix: Prefix prepended to every generated tag
        parse_quotes: Number objects inside blockquotes and callouts too
        enable_tagged_only: Only renumber objects that already carry a tag
    """

    numbering_type: AutoNumberingType = AutoNumberingType.RELATIVE
    max_depth: int = 3
    delimiter: str = "."
    no_heading_prefix: str = "P"
    global_prefix: str = ""
    parse_quotes: bool = False
    enable_tagged_only: bool = False


class HeadingStepResult(NamedTuple):
    in_code_block: bool
    heading_index: int
    should_continue: bool


def new_numbering_state(configs: AutoNumberConfigs) -> AutoNumberingState:
    return AutoNumberingState(
        level_counters=[0] * configs.max_depth,
        max_depth=configs.max_depth,
        delimiter=configs.delimiter,
        global_prefix=configs.global_prefix,
        no_heading_prefix=configs.no_heading_prefix,
    )


def generate_next_tag(state: AutoNumberingState) -> str:
    """Advance the counters and return the next tag.

    Before any heading the tag is ``global + no_heading_prefix + n``. Under a
    heading the non-zero level counters up to ``min(current_depth,
    max_depth - 1)`` form the prefix of the object number.
    """
    if state.current_depth == 0:
        state.obj_number_before_heading += 1
        return f"{state.global_prefix}{state.no_heading_prefix}{state.obj_number_before_heading}"

    depth_index = min(state.current_depth, state.max_depth - 1)
    state.obj_number += 1
    if depth_index == 0:
        return f"{state.global_prefix}{state.obj_number}"

    levels = state.delimiter.join(str(n) for n in state.level_counters[:depth_index] if n > 0)
    return f"{state.global_prefix}{levels}{state.delimiter}{state.obj_number}"


def generate_new_tag(
    state: AutoNumberingState,
    old_tag: Optional[str],
    enable_tagged_only: bool,
) -> Optional[str]:
    """Like :func:`generate_next_tag`, but returns None (without counting) when
    tagged-only mode is on and the object has no tag yet."""
    if enable_tagged_only and not old_tag:
        return None
    return generate_next_tag(state)


def update_level_counters(
    level_counters: List[int],
    heading_level: int,
    max_depth: int,
    numbering_type: AutoNumberingType,
) -> None:
    """Count a heading of ``heading_level`` into ``level_counters`` in place.

    Headings deeper than ``max_depth`` leave the counters untouched. In
    Absolute mode, skipped parent levels are forced to 1.
    """
    if heading_level < 1 or heading_level > max_depth:
        return
    if numbering_type == AutoNumberingType.ABSOLUTE:
        for i in range(heading_level - 1):
            if level_counters[i] == 0:
                level_counters[i] = 1
    level_counters[heading_level - 1] += 1
    for i in range(heading_level, len(level_counters)):
        level_counters[i] = 0


def process_code_block_and_heading(
    env: MarkdownLineEnvironment,
    in_code_block: bool,
    state: AutoNumberingState,
    heading_index: int,
    headings: List[Heading],
    numbering_type: AutoNumberingType,
) -> HeadingStepResult:
    """Handle the code-fence and heading part of one numbering step.

    Returns:
        New code-block flag, new heading index, and whether the caller should
        pass the line through without looking for numbered objects.
    """
    if env.is_code_block_toggle:
        return HeadingStepResult(not in_code_block, heading_index, True)
    if in_code_block:
        return HeadingStepResult(True, heading_index, True)

    if env.heading_match is not None:
        if numbering_type == AutoNumberingType.RELATIVE:
            level = relative_heading_level(headings, heading_index)
        else:
            level = len(env.heading_match.group(1))
        update_level_counters(state.level_counters, level, state.max_depth, numbering_type)
        if level <= state.max_depth - 1:
            state.obj_number = 0
        state.current_depth = min(level, state.max_depth)
        return HeadingStepResult(False, heading_index + 1, True)

    return HeadingStepResult(False, heading_index, False)
