"""Auto-numbering of figures (image embeds)."""
import logging
from dataclasses import dataclass
from typing import Dict, List

from .auto_number import AutoNumberConfigs, generate_new_tag, new_numbering_state, process_code_block_and_heading
from .headings import parse_headings_in_markdown
from .images import parse_image_line, replace_image_tag
from .markdown_line import parse_markdown_line
from .models import AutoNumberResult

logger = logging.getLogger(__name__)


@dataclass
class FigureAutoNumberConfigs(AutoNumberConfigs):
    """Auto-numbering options for figures.

    Attributes:
        fig_citation_prefix: Prefix marking the figure tag part (``fig:``)
    """

    fig_citation_prefix: str = "fig:"


def auto_number_figures(content: str, configs: FigureAutoNumberConfigs) -> AutoNumberResult:
    """Renumber every image embed in a document.

    The new tag is written as a ``fig:<tag>`` metadata part, replacing any
    old one. Headings drive the numbering exactly as for equations.
    """
    lines = content.split("\n")
    headings = parse_headings_in_markdown(content, configs.parse_quotes)
    state = new_numbering_state(configs)
    prefix = configs.fig_citation_prefix

    tag_mapping: Dict[str, str] = {}
    result: List[str] = []
    in_code_block = False
    heading_index = 0

    for i, line in enumerate(lines):
        env = parse_markdown_line(line, configs.parse_quotes, in_code_block)
        step = process_code_block_and_heading(
            env, in_code_block, state, heading_index, headings, configs.numbering_type
        )
        in_code_block, heading_index = step.in_code_block, step.heading_index
        if step.should_continue or not env.is_image:
            result.append(line)
            continue

        # is_image only looks at the first character; parse strictly here
        image = parse_image_line(line, i, prefix)
        if image is None or (image.in_quote and not configs.parse_quotes):
            result.append(line)
            continue

        new_tag = generate_new_tag(state, image.tag, configs.enable_tagged_only)
        if new_tag is None:
            result.append(line)
            continue

        if image.tag and image.tag not in tag_mapping:
            tag_mapping[image.tag] = new_tag
        result.append(replace_image_tag(image, f"{prefix}{new_tag}", prefix))

    logger.debug(f"Numbered figures, {len(tag_mapping)} existing tags remapped")
    return AutoNumberResult(md="\n".join(result), tag_mapping=tag_mapping)
