from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import re
    from collections.abc import Sequence


def is_removed(line: str, remove_patterns: Sequence[re.Pattern[str]]) -> bool:
    """Tell whether a line must be dropped from the rendered output.

    Args:
        line (str): the line to test
        remove_patterns (Sequence[re.Pattern[str]]): the `--remove-all-lines` patterns

    Returns:
        bool: True if any remove pattern matches the line
    """
    return any(p.search(line) for p in remove_patterns)


def is_seed_match(line: str, include_patterns: Sequence[re.Pattern[str]]) -> bool:
    """Tell whether a line seeds the selection, before context expansion.

    Removal never prevents seeding: removal is applied when rendering. When there are
    no include patterns every line seeds, so that removal alone can run over the whole
    file.

    Args:
        line (str): the line to test
        include_patterns (Sequence[re.Pattern[str]]): the `--line-contains` patterns

    Returns:
        bool: True if the line is a seed match
    """
    if include_patterns:
        return any(p.search(line) for p in include_patterns)
    return True


def select_line_indices(
    lines: Sequence[str],
    include_patterns: Sequence[re.Pattern[str]],
    before: int = 0,
    after: int = 0,
) -> list[int]:
    """Select the 0-based indices of the lines to output.

    Seed matches are expanded by `before` lines above and `after` lines below, clipped
    to the file bounds. Overlapping windows merge.

    Args:
        lines (Sequence[str]): the lines of one file, split once
        include_patterns (Sequence[re.Pattern[str]]): patterns seeding the selection
        before (int): context radius above each seed match
        after (int): context radius below each seed match

    Raises:
        ValueError: if a context radius is negative

    Returns:
        list[int]: the selected indices in ascending order, empty if nothing matched
    """
    if before < 0 or after < 0:
        msg = f"Context radii must be non-negative (before={before}, after={after})"
        raise ValueError(msg)

    seeds = [i for i, line in enumerate(lines) if is_seed_match(line, include_patterns)]
    if not seeds:
        return []

    last = len(lines) - 1
    selected = set(seeds)
    for index in seeds:
        selected.update(range(max(0, index - before), index))
        selected.update(range(index + 1, min(last, index + after) + 1))
    return sorted(selected)
