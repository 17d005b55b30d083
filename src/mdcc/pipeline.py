from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from mdcc.config import default_parallelism
from mdcc.console import NullSink
from mdcc.file_discovery import find_matching_files
from mdcc.formatting import format_file
from mdcc.instructions import apply_all_instructions
from mdcc.logging import logger
from mdcc.output_paths import save_output

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from mdcc.console import StatusSink
    from mdcc.settings import GroupSettings, Settings

    Transform = Callable[[Sequence[str], str], str]


class FileOutcome(BaseModel):
    """Result of processing one file: its final content, or the error that stopped it."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: str = Field(..., description="File path as discovered.")
    content: str = Field(default="", description="Final block (after instructions).")
    error: Exception | None = Field(default=None, description="Failure, if any.")

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_parallelism(groups: Sequence[GroupSettings]) -> int:
    """Size of the instruction permit pool: the largest `threads` of the groups, or the CPU count.

    Args:
        groups (Sequence[GroupSettings]): the groups of the run

    Returns:
        int: the number of instruction runs allowed at once, at least 1
    """
    threads = max((g.threads for g in groups), default=0)
    return threads if threads > 0 else default_parallelism()


def emit(path: str, content: str, group: GroupSettings, sink: StatusSink) -> None:
    """Print a file's final block and save it when the group has an output template."""
    sink.print_line(content)
    if group.save_file_output:
        target = save_output(path, group.save_file_output, content)
        sink.print_status(f"Saving to: {target} ... Done!")


async def process_file(
    path: str,
    group: GroupSettings,
    *,
    semaphore: asyncio.Semaphore,
    sink: StatusSink,
    transform: Transform = apply_all_instructions,
    executor: ThreadPoolExecutor | None = None,
) -> str:
    """Format one file, apply its group's instructions and emit the result.

    Files without instructions are handled inline: no permit, no suspension. Otherwise
    the instructions run on `executor` (the loop default if None) while holding one
    permit of `semaphore`.

    Args:
        path (str): the file to process
        group (GroupSettings): the options of the file's group
        semaphore (asyncio.Semaphore): the permits bounding concurrent instruction runs
        sink (StatusSink): where blocks and status are printed
        transform (Transform): applies the instructions to the formatted block
        executor (ThreadPoolExecutor | None): the worker threads running the instructions

    Returns:
        str: the final block
    """
    sink.print_status(f"Processing: {path} ...")
    try:
        formatted = format_file(path, group)
        if not group.file_instructions:
            emit(path, formatted, group, sink)
            return formatted

        async with semaphore:
            logger.debug("Applying instructions", file=path, count=len(group.file_instructions))
            loop = asyncio.get_running_loop()
            final = await loop.run_in_executor(executor, partial(transform, group.file_instructions, formatted))
        emit(path, final, group, sink)
        return final
    finally:
        sink.erase_status()


async def process_group(
    group: GroupSettings,
    *,
    semaphore: asyncio.Semaphore,
    sink: StatusSink,
    transform: Transform = apply_all_instructions,
    executor: ThreadPoolExecutor | None = None,
    root: Path | None = None,
) -> list[FileOutcome]:
    """Discover the files of a group and process them concurrently.

    A failing file does not stop the others; its error is kept in its outcome.

    Returns:
        list[FileOutcome]: one outcome per file, in discovery order
    """
    files = find_matching_files(group, root)
    results = await asyncio.gather(
        *(
            process_file(f, group, semaphore=semaphore, sink=sink, transform=transform, executor=executor)
            for f in files
        ),
        return_exceptions=True,
    )
    outcomes: list[FileOutcome] = []
    for f, result in zip(files, results, strict=True):
        if isinstance(result, Exception):
            logger.error("Processing failed", file=f, error=str(result))
            outcomes.append(FileOutcome(path=f, error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(FileOutcome(path=f, content=result))
    return outcomes


async def run_groups(
    settings: Settings,
    *,
    sink: StatusSink | None = None,
    transform: Transform = apply_all_instructions,
    root: Path | None = None,
) -> list[FileOutcome]:
    """Process every group of a run, sharing one permit pool across all of them.

    The instructions run on a dedicated thread pool as large as the permit pool, so that
    `threads` is the effective number of concurrent instruction runs.

    Args:
        settings (Settings): the run settings
        sink (StatusSink | None): where blocks and status are printed; discarded if None
        transform (Transform): applies the instructions to each formatted block
        root (Path | None): the directory relative globs are resolved from (cwd by default)

    Returns:
        list[FileOutcome]: the outcomes, grouped in group order
    """
    out_sink = sink or NullSink()
    parallelism = resolve_parallelism(settings.groups)
    logger.debug("Starting run", groups=len(settings.groups), parallelism=parallelism)
    semaphore = asyncio.Semaphore(parallelism)
    with ThreadPoolExecutor(max_workers=parallelism, thread_name_prefix="mdcc") as executor:
        per_group = await asyncio.gather(
            *(
                process_group(
                    g,
                    semaphore=semaphore,
                    sink=out_sink,
                    transform=transform,
                    executor=executor,
                    root=root,
                )
                for g in settings.groups
            ),
        )
    out_sink.erase_status()
    return [outcome for outcomes in per_group for outcome in outcomes]


def run(
    settings: Settings,
    *,
    sink: StatusSink | None = None,
    transform: Transform = apply_all_instructions,
    root: Path | None = None,
) -> list[FileOutcome]:
    """Synchronous wrapper around `run_groups`."""
    return asyncio.run(run_groups(settings, sink=sink, transform=transform, root=root))
