from __future__ import annotations

import fnmatch
import glob
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from mdcc.config import DEFAULT_EXCLUDES
from mdcc.logging import logger

if TYPE_CHECKING:
    import re
    from collections.abc import Sequence

    from mdcc.settings import GroupSettings


def to_posix(path: str | Path) -> str:
    """Render a path with forward slashes."""
    return str(path).replace("\\", "/")


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Normalize a sequence of path glob patterns.

    Strip whitespace, drop empty patterns and replace backslashes with forward slashes.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip()
        if not g2:
            continue
        out.append(g2.replace("\\", "/"))
    return out


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
        return stat.S_ISREG(st.st_mode)
    except OSError:
        return False


def in_default_excludes(path: str) -> bool:
    """Check if any directory of a POSIX path is in `DEFAULT_EXCLUDES`."""
    return any(part in DEFAULT_EXCLUDES for part in path.split("/")[:-1])


def match_any_glob(rel: str, globs: Sequence[str]) -> bool:
    """Check if a path, or its file name, matches any of the provided glob patterns.

    Args:
        rel (str): the POSIX path to check
        globs (Sequence[str]): the glob patterns to match against

    Returns:
        bool: True if `rel` or its name matches any pattern in `globs`, False otherwise
    """
    name = rel.rsplit("/", 1)[-1]
    return any(fnmatch.fnmatch(rel, g) or fnmatch.fnmatch(name, g) for g in globs)


def expand_globs(globs: Sequence[str], root: Path | None = None) -> list[str]:
    """Expand glob patterns into file paths, in pattern order, without duplicates.

    `**` matches any number of directories. A pattern naming an existing file is kept
    as is. Paths are returned with forward slashes, relative to `root` when the
    pattern is relative.

    Args:
        globs (Sequence[str]): the patterns to expand
        root (Path | None): the directory relative patterns are resolved from

    Returns:
        list[str]: the matching file paths
    """
    root_dir = str(root) if root is not None else None
    seen: set[str] = set()
    out: list[str] = []
    for pattern in normalize_globs(globs):
        matches = sorted(glob.glob(pattern, root_dir=root_dir, recursive=True))  # noqa: PTH207
        for m in matches:
            rel = to_posix(m)
            full = Path(root_dir, rel) if root_dir else Path(rel)
            if rel in seen or not is_regular_file(full):
                continue
            seen.add(rel)
            out.append(rel)
    return out


def content_matches(
    path: Path,
    include: Sequence[re.Pattern[str]],
    exclude: Sequence[re.Pattern[str]],
) -> bool:
    """Apply the `--file-contains` / `--file-not-contains` filters to one file.

    Args:
        path (Path): the file to inspect
        include (Sequence[re.Pattern[str]]): the file must match at least one of these (if any)
        exclude (Sequence[re.Pattern[str]]): the file must match none of these

    Returns:
        bool: True if the file is kept
    """
    if not include and not exclude:
        return True
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        # Kept: the formatter reports the read error in the output.
        logger.warning("Cannot inspect file", file=str(path), error=str(e))
        return True
    if include and not any(p.search(text) for p in include):
        return False
    return not (exclude and any(p.search(text) for p in exclude))


def find_matching_files(group: GroupSettings, root: Path | None = None) -> list[str]:
    """Find the files of a group, in discovery order.

    Args:
        group (GroupSettings): the group whose globs and file filters apply
        root (Path | None): the directory relative globs are resolved from (cwd by default)

    Returns:
        list[str]: the selected file paths
    """
    excludes = normalize_globs(group.exclude_globs)
    out: list[str] = []
    for rel in expand_globs(group.globs, root):
        if in_default_excludes(rel):
            continue
        if excludes and match_any_glob(rel, excludes):
            continue
        full = Path(root, rel) if root is not None else Path(rel)
        if not content_matches(full, group.include_file_contains, group.exclude_file_contains):
            continue
        out.append(to_posix(full))
    logger.debug("Matched files", globs=group.globs, count=len(out))
    return out
