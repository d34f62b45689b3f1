"""Tag algebra: cross-file envelopes and continuous ranges.

A tag such as ``2^1.1.1~3`` is read as cross-file index ``2``, local path
``1.1.1~3``; the local path is a compact range standing for ``1.1.1``,
``1.1.2`` and ``1.1.3``. All functions here are pure string transforms.
"""
import re
from typing import Dict, List, NamedTuple, Optional, Sequence

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_LETTER_NUMBER = re.compile(r"^(.*\D)(\d+)$", re.DOTALL)


class FileCitation(NamedTuple):
    """A tag split into its local part and optional cross-file index."""

    local: str
    cross_file: Optional[str]


def _parse_int(text: str) -> Optional[int]:
    # Leading-digits parse: "01" -> 1, "3x" -> 3, "x3" -> None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _last_delimiter_index(tag: str, delimiters: Sequence[str]) -> int:
    index = -1
    for delimiter in delimiters:
        if delimiter:
            index = max(index, tag.rfind(delimiter))
    return index


def split_file_citation(tag: str, file_delimiter: str) -> FileCitation:
    """Split a tag at the FIRST file delimiter.

    >>> split_file_citation("1^2^1.1.1", "^")
    FileCitation(local='2^1.1.1', cross_file='1')
    """
    index = tag.find(file_delimiter) if file_delimiter else -1
    if index >= 0:
        return FileCitation(local=tag[index + len(file_delimiter):], cross_file=tag[:index])
    return FileCitation(local=tag, cross_file=None)


def join_file_citation(local: str, cross_file: Optional[str], file_delimiter: str) -> str:
    if cross_file is None:
        return local
    return f"{cross_file}{file_delimiter}{local}"


def extract_last_number_from_tag(tag: str, delimiters: Sequence[str]) -> Optional[int]:
    """Return the trailing number of a tag, or None.

    The number follows the rightmost delimiter. Without any delimiter a
    trailing digit run after a non-digit prefix is used (``EQ12`` -> 12), and
    failing that the whole tag is parsed.
    """
    index = _last_delimiter_index(tag, delimiters)
    if index >= 0:
        return _parse_int(tag[index + 1:])
    match = _LETTER_NUMBER.match(tag)
    if match:
        return int(match.group(2))
    return _parse_int(tag)


def extract_prefix_before_last_number(tag: str, delimiters: Sequence[str]) -> str:
    """Everything before the trailing number (see :func:`extract_last_number_from_tag`)."""
    index = _last_delimiter_index(tag, delimiters)
    if index >= 0:
        return tag[:index + 1]
    match = _LETTER_NUMBER.match(tag)
    if match:
        return match.group(1)
    return ""


def parse_delimiters(raw: str) -> List[str]:
    """Turn a space separated delimiter setting (``". - : \\_"``) into a list."""
    return [d.replace("\\_", "_") for d in raw.split(" ") if d.strip()]


def _expand_tag(tag: str, range_symbol: str, delimiters: Sequence[str], file_delimiter: str) -> List[str]:
    local, cross_file = split_file_citation(tag, file_delimiter)
    if not range_symbol or range_symbol not in local:
        return [tag]

    split_at = local.rfind(range_symbol)
    start_part = local[:split_at]
    end_part = local[split_at + len(range_symbol):]

    start = extract_last_number_from_tag(start_part, delimiters)
    end = _parse_int(end_part)
    if start is None or end is None or start > end:
        return [tag]

    prefix = extract_prefix_before_last_number(start_part, delimiters)
    return [
        join_file_citation(f"{prefix}{n}", cross_file, file_delimiter)
        for n in range(start, end + 1)
    ]


def split_continuous_citation_tags(
    tags: Optional[Sequence[str]],
    range_symbol: Optional[str],
    delimiters: Sequence[str],
    file_delimiter: str,
) -> List[str]:
    """Expand compact range tags into discrete tags.

    Args:
        tags: Tags to expand; None is treated as empty
        range_symbol: Range marker (``~``); None disables expansion
        delimiters: Delimiters separating numbering levels
        file_delimiter: Cross-file envelope delimiter (``^``)

    Returns:
        Flat list of tags. Invalid ranges (unparsable bounds, start > end)
        are passed through unchanged.
    """
    if not tags:
        return []
    result = []
    for raw in tags:
        tag = raw.strip()
        if not tag:
            continue
        result.extend(_expand_tag(tag, range_symbol, delimiters, file_delimiter))
    return result


def _combine_group(
    locals_: List[str],
    range_symbol: str,
    delimiters: Sequence[str],
) -> Dict[str, str]:
    """Map each local tag of one cross-file group to its combined form."""
    by_prefix: Dict[str, Dict[int, List[str]]] = {}
    mapping: Dict[str, str] = {}

    for local in locals_:
        number = extract_last_number_from_tag(local, delimiters)
        if number is None:
            mapping[local] = local
            continue
        prefix = extract_prefix_before_last_number(local, delimiters)
        by_prefix.setdefault(prefix, {}).setdefault(number, []).append(local)

    for prefix, numbers in by_prefix.items():
        ordered = sorted(numbers)
        run = [ordered[0]]
        for number in ordered[1:] + [None]:
            if number is not None and number == run[-1] + 1:
                run.append(number)
                continue
            if len(run) == 1:
                # Single entries keep their own spelling
                for local in numbers[run[0]]:
                    mapping[local] = local
            else:
                combined = f"{prefix}{run[0]}{range_symbol}{run[-1]}"
                for n in run:
                    for local in numbers[n]:
                        mapping[local] = combined
            if number is not None:
                run = [number]
    return mapping


def combine_continuous_citation_tags(
    tags: Sequence[str],
    range_symbol: str,
    delimiters: Sequence[str],
    file_delimiter: str,
) -> List[str]:
    """Collapse runs of consecutive tags into compact ranges.

    Tags are grouped by cross-file index, then by the text before their
    trailing number. Output keeps the order in which each combined form first
    appears, and each combined form is emitted once.

    >>> combine_continuous_citation_tags(["P1", "2^1.1.1", "2^1.1.2", "2^1.1.3"], "~", ["."], "^")
    ['P1', '2^1.1.1~3']
    """
    cleaned = [t for t in tags if t]
    if not cleaned:
        return []

    groups: Dict[Optional[str], List[str]] = {}
    for tag in cleaned:
        local, cross_file = split_file_citation(tag, file_delimiter)
        groups.setdefault(cross_file, []).append(local)

    combined_for: Dict[str, str] = {}
    for cross_file, locals_ in groups.items():
        for local, combined in _combine_group(locals_, range_symbol, delimiters).items():
            combined_for[join_file_citation(local, cross_file, file_delimiter)] = join_file_citation(
                combined, cross_file, file_delimiter
            )

    result = []
    seen = set()
    for tag in cleaned:
        combined = combined_for[tag]
        if combined not in seen:
            seen.add(combined)
            result.append(combined)
    return result
