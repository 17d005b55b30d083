from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from mdcc.fencing import fence_for
from mdcc.line_selection import is_removed, select_line_indices
from mdcc.logging import logger

if TYPE_CHECKING:
    import re
    from collections.abc import Sequence

    from mdcc.settings import GroupSettings


def is_binary(raw: bytes) -> bool:
    """Heuristic binary check: any NUL byte makes the file binary."""
    return b"\x00" in raw


def number_lines(content: str) -> str:
    """Prefix every line of `content` with its 1-based number.

    Args:
        content (str): the text to number

    Returns:
        str: the numbered text, lines joined with `\\n`
    """
    return "\n".join(f"{i}: {line}" for i, line in enumerate(content.split("\n"), start=1))


def render_filtered(
    content: str,
    *,
    include_patterns: Sequence[re.Pattern[str]],
    remove_patterns: Sequence[re.Pattern[str]],
    before: int,
    after: int,
    line_numbers: bool,
    fence: str,
) -> str:
    """Render the selected lines of `content`.

    Lines are emitted in ascending order. When context lines were requested, a gap
    between two selected lines closes and reopens the fence so that disjoint windows
    stay visually apart. Removed lines keep their `N:` placeholder when numbering.

    Args:
        content (str): the decoded file content
        include_patterns (Sequence[re.Pattern[str]]): patterns seeding the selection
        remove_patterns (Sequence[re.Pattern[str]]): patterns dropping lines from the output
        before (int): context lines before each match
        after (int): context lines after each match
        line_numbers (bool): prefix lines with their 1-based number
        fence (str): the fence wrapping the block, reused for break separators

    Returns:
        str: the rendered body, empty when no line was selected
    """
    lines = content.split("\n")
    selected = select_line_indices(lines, include_patterns, before=before, after=after)
    if not selected:
        return ""

    check_for_breaks = before + after > 0
    previous: int | None = None
    out: list[str] = []
    for index in selected:
        if check_for_breaks and previous is not None and index > previous + 1:
            out.append(f"{fence}\n\n{fence}")

        line = lines[index]
        removed = is_removed(line, remove_patterns)
        if line_numbers:
            out.append(f"{index + 1}:" if removed else f"{index + 1}: {line}")
        elif not removed:
            out.append(line)

        previous = index
    return "\n".join(out)


def format_content(
    file_name: str,
    raw: bytes,
    *,
    include_patterns: Sequence[re.Pattern[str]] = (),
    remove_patterns: Sequence[re.Pattern[str]] = (),
    before: int = 0,
    after: int = 0,
    line_numbers: bool = False,
) -> str:
    """Format a file's raw bytes as a Markdown section.

    The section is `## <file_name>`, a blank line and the fenced body. Binary content
    (any NUL byte) gets an empty body.

    Args:
        file_name (str): the name shown in the header
        raw (bytes): the file content
        include_patterns (Sequence[re.Pattern[str]]): patterns seeding the line selection
        remove_patterns (Sequence[re.Pattern[str]]): patterns dropping lines from the output
        before (int): context lines before each match
        after (int): context lines after each match
        line_numbers (bool): prefix lines with their 1-based number

    Raises:
        UnicodeDecodeError: if the content is not valid UTF-8

    Returns:
        str: the formatted section
    """
    if is_binary(raw):
        logger.debug("Binary content, emitting empty body", file=file_name)
        content = ""
        fence = fence_for(file_name, content)
    else:
        content = raw.decode("utf-8-sig")
        fence = fence_for(file_name, content)
        if include_patterns or remove_patterns:
            content = render_filtered(
                content,
                include_patterns=include_patterns,
                remove_patterns=remove_patterns,
                before=before,
                after=after,
                line_numbers=line_numbers,
                fence=fence,
            )
        elif line_numbers:
            content = number_lines(content)

    return f"## {file_name}\n\n{fence}\n{content}\n{fence}\n"


def format_error(file_name: str, error: Exception) -> str:
    """Header-only section reporting that a file could not be read."""
    return f"## {file_name} - Error reading file: {error}\n\n"


def format_file(path: str | Path, group: GroupSettings) -> str:
    """Read a file and format it with the line options of its group.

    Read and decode failures do not propagate: they are logged and reported in the
    section header.

    Args:
        path (str | Path): the file to read
        group (GroupSettings): the options of the file's group

    Returns:
        str: the formatted section, or an error header
    """
    file_name = str(path)
    try:
        raw = Path(path).read_bytes()
        return format_content(
            file_name,
            raw,
            include_patterns=group.include_line_contains,
            remove_patterns=group.remove_all_lines,
            before=group.lines_before,
            after=group.lines_after,
            line_numbers=group.line_numbers,
        )
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Error reading file", file=file_name, error=str(e))
        return format_error(file_name, e)
