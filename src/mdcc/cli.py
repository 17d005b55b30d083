"""
mdcc: Markdown Context Creator.

Overview
--------
Print the content of files matched by glob patterns as Markdown sections, one
`## path` header and one fenced block per file, ready to paste into an LLM
conversation or to save next to the sources.

Lines can be filtered with regular expressions (`--line-contains`), widened
with context (`--lines-before`, `--lines-after`, `--lines`), removed
(`--remove-all-lines`) and numbered (`--line-numbers`). Each file's block can
also be passed through an external AI command (`--file-instructions`), with at
most `--threads` commands running at once, and saved with
`--save-file-output`.

Several groups of files, each with its own options, are separated by `--`.
Arguments starting with `@` are replaced by the content of the named file;
with `@@`, by one argument per line of that file.

Usage
-----
    mdcc "src/**/*.py" --line-contains "def " --lines-after 2 --line-numbers
    mdcc "**/*.json" --file-instructions "convert the JSON to YAML" --threads 5
    mdcc "*.md" -- "src/**/*.cs" --remove-all-lines "^\\s*//"
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from mdcc import __version__
from mdcc.config import BANNER
from mdcc.console import ConsoleSink
from mdcc.exceptions import ArgumentFileError, InvalidConfigurationError, MdccError
from mdcc.logging import logger, setup_logging
from mdcc.pipeline import run
from mdcc.settings import GroupSettings, Settings

if TYPE_CHECKING:
    from collections.abc import Sequence

GROUP_SEPARATOR = "--"
HELP_FLAGS = {"-h", "--help", "-?"}

USAGE = """\
USAGE: mdcc [glob1 [glob2 [...]]] [OPTIONS] [-- [glob3 [...]] [OPTIONS]] [...]

OPTIONS

  --contains REGEX             Match only files and lines that contain the regex
  --file-contains REGEX        Match only files that contain the regex
  --file-not-contains REGEX    Exclude files that contain the regex
  --exclude GLOB               Exclude files matching the glob (path or file name)

  --line-contains REGEX        Match only lines that contain the regex
  --lines-before N             Include N lines before matching lines (default 0)
  --lines-after N              Include N lines after matching lines (default 0)
  --lines N                    Include N lines both before and after matching lines
  --line-numbers               Prefix lines with their line number
  --remove-all-lines REGEX     Remove lines that contain the regex

  --file-instructions TEXT...  Apply instructions to each file with the AI command
  --threads N                  Concurrent instruction runs (default: CPU count)
  --save-file-output TEMPLATE  Save each file's output, e.g. {filePath}/{fileBase}.md
                               Placeholders: {filePath} {fileName} {fileBase} {fileExt} {timeStamp}

  --config FILE                Read groups and options from a YAML file
  --verbose                    Print progress status on stderr
  --debug                      Log at DEBUG level
  --log-file FILE              Write logs to FILE instead of stderr
  --version                    Print the version and exit

  --                           Start a new group of files with its own options
  @FILE                        Replaced by the content of FILE (kept as is if FILE does not exist)
  @@FILE                       Replaced by one argument per line of FILE
"""


def read_argument_file(path: Path) -> str:
    """Read an `@file` argument.

    Raises:
        ArgumentFileError: if the file cannot be read

    Returns:
        str: the file content
    """
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ArgumentFileError(path=path, reason=str(e)) from e


def expand_at_arguments(argv: Sequence[str]) -> list[str]:
    """Replace `@file` by the file's content and `@@file` by one argument per non-empty line.

    An argument naming no existing file is kept as is, so that values such as
    `--line-contains @Override` still work.

    Args:
        argv (Sequence[str]): the raw arguments

    Returns:
        list[str]: the expanded arguments
    """
    out: list[str] = []
    for arg in argv:
        if arg.startswith("@@") and len(arg) > 2 and Path(arg[2:]).exists():  # noqa: PLR2004
            lines = read_argument_file(Path(arg[2:])).splitlines()
            out.extend(line.strip() for line in lines if line.strip())
        elif arg.startswith("@") and len(arg) > 1 and Path(arg[1:]).exists():
            out.append(read_argument_file(Path(arg[1:])).rstrip("\n"))
        else:
            out.append(arg)
    return out


def split_groups(argv: Sequence[str]) -> list[list[str]]:
    """Split arguments into groups at each bare `--`."""
    groups: list[list[str]] = [[]]
    for arg in argv:
        if arg == GROUP_SEPARATOR:
            groups.append([])
        else:
            groups[-1].append(arg)
    return [g for g in groups if g]


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for one group of arguments."""
    p = argparse.ArgumentParser(
        prog="mdcc",
        description="Assemble Markdown context from files.",
        add_help=False,
    )
    p.add_argument("globs", nargs="*", help="File glob patterns.")
    p.add_argument("--version", action="version", version=f"mdcc {__version__}")

    p.add_argument("--contains", action="append", default=[], help="File and line regex.")
    p.add_argument("--file-contains", action="append", default=[], help="File regex.")
    p.add_argument("--file-not-contains", action="append", default=[], help="Excluding file regex.")
    p.add_argument("--exclude", action="append", default=[], help="Exclude glob (repeatable).")

    p.add_argument("--line-contains", action="append", default=[], help="Line regex.")
    p.add_argument("--lines-before", type=int, default=None, help="Context lines before.")
    p.add_argument("--lines-after", type=int, default=None, help="Context lines after.")
    p.add_argument("--lines", type=int, default=None, help="Context lines before and after.")
    p.add_argument("--line-numbers", action="store_true", help="Number lines.")
    p.add_argument("--remove-all-lines", action="append", default=[], help="Removing line regex.")

    p.add_argument(
        "--file-instructions",
        nargs="+",
        action="extend",
        default=[],
        help="Instructions applied in order to each file.",
    )
    p.add_argument("--threads", type=int, default=0, help="Concurrent instruction runs.")
    p.add_argument("--save-file-output", type=str, default="", help="Output path template.")

    p.add_argument("--config", type=str, default="", help="YAML config file.")
    p.add_argument("--verbose", action="store_true", help="Print progress status.")
    p.add_argument("--debug", action="store_true", help="Log at DEBUG level.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    return p


def group_from_namespace(ns: argparse.Namespace) -> GroupSettings:
    """Build the settings of one group from its parsed arguments.

    `--contains` feeds both the file and the line filters; `--lines` sets the radius on
    both sides unless `--lines-before` / `--lines-after` are given.

    Returns:
        GroupSettings: the validated group settings
    """
    radius = ns.lines or 0
    return GroupSettings(
        globs=ns.globs,
        exclude_globs=ns.exclude,
        include_file_contains=[*ns.file_contains, *ns.contains],
        exclude_file_contains=ns.file_not_contains,
        include_line_contains=[*ns.line_contains, *ns.contains],
        remove_all_lines=ns.remove_all_lines,
        lines_before=ns.lines_before if ns.lines_before is not None else radius,
        lines_after=ns.lines_after if ns.lines_after is not None else radius,
        line_numbers=ns.line_numbers,
        file_instructions=ns.file_instructions,
        threads=ns.threads,
        save_file_output=ns.save_file_output,
    )


def parse_args(argv: Sequence[str]) -> Settings:
    """Parse the command line into validated settings.

    All patterns are compiled here, so that a bad regex stops the run before any file
    is read.

    Args:
        argv (Sequence[str]): the arguments, without the program name

    Raises:
        InvalidConfigurationError: if no group names any file pattern

    Returns:
        Settings: the run settings
    """
    parser = build_parser()
    groups: list[GroupSettings] = []
    debug = verbose = False
    log_file = ""
    for segment in split_groups(expand_at_arguments(argv)):
        ns = parser.parse_args(segment)
        debug = debug or ns.debug
        verbose = verbose or ns.verbose
        log_file = ns.log_file or log_file
        if ns.config:
            loaded = Settings.from_yaml(Path(ns.config))
            groups.extend(loaded.groups)
            debug = debug or loaded.debug
            verbose = verbose or loaded.verbose
            log_file = log_file or loaded.log_file
        if ns.globs:
            groups.append(group_from_namespace(ns))

    if not groups:
        raise InvalidConfigurationError(message="No file patterns given.")
    return Settings(groups=groups, debug=debug, verbose=verbose, log_file=log_file)


def print_banner() -> None:
    print(BANNER.format(version=__version__))


def print_usage() -> None:
    print(USAGE)


def main(argv: Sequence[str] | None = None) -> int:
    """Run mdcc.

    Returns:
        int: 0 on success, 1 on usage request or when a file failed, 2 on invalid configuration
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or HELP_FLAGS.intersection(args):
        print_banner()
        print_usage()
        return 1

    try:
        settings = parse_args(args)
    except (MdccError, ValidationError) as e:
        logger.error("Invalid configuration", error=str(e))
        print_banner()
        print(f"{e}\n")
        return 2

    if settings.log_file or settings.debug:
        setup_logging(settings.log_file or None, debug=settings.debug, force=True)

    outcomes = run(settings, sink=ConsoleSink(verbose=settings.verbose))

    failed = [o for o in outcomes if not o.ok]
    logger.info("Run finished", files=len(outcomes), failed=len(failed))
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
