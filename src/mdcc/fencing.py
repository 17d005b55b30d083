from __future__ import annotations

import re
from pathlib import PurePath

from mdcc.config import DEFAULT_FENCE, FENCE_AWARE_SUFFIXES, FENCE_CHAR, MIN_FENCE_LENGTH

_BACKTICK_RUN = re.compile(f"{re.escape(FENCE_CHAR)}+")


def longest_backtick_run(content: str) -> int:
    """Return the length of the longest run of consecutive backticks in `content`."""
    return max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)


def required_fence_length(content: str) -> int:
    """Compute a fence length that no backtick run inside `content` can close.

    Args:
        content (str): the text to embed

    Returns:
        int: at least 3, and always longer than the longest backtick run of the content
    """
    return max(MIN_FENCE_LENGTH, longest_backtick_run(content) + 1)


def is_fence_aware(file_name: str | PurePath) -> bool:
    """Tell whether the file's own format uses backtick fences (Markdown)."""
    return PurePath(file_name).suffix.lower() in FENCE_AWARE_SUFFIXES


def fence_for(file_name: str | PurePath, content: str) -> str:
    """Build the fence used to wrap a file's content.

    Markdown files get a fence sized with `required_fence_length`; any other file
    gets a plain triple backtick fence.

    Args:
        file_name (str | PurePath): the file the content comes from
        content (str): the decoded content of the file

    Returns:
        str: the fence delimiter
    """
    if is_fence_aware(file_name):
        return FENCE_CHAR * required_fence_length(content)
    return DEFAULT_FENCE
