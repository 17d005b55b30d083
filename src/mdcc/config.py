from __future__ import annotations

import os

DEFAULT_EXCLUDES = {
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    ".mypy_cache",
    ".ruff_cache",
    ".pytest_cache",
    ".ipynb_checkpoints",
    "node_modules",
    ".idea",
    ".vscode",
}

# Targets whose own syntax uses backtick fences; their fence is sized to the content.
FENCE_AWARE_SUFFIXES = {".md", ".markdown"}

FENCE_CHAR = "`"
MIN_FENCE_LENGTH = 3
DEFAULT_FENCE = FENCE_CHAR * MIN_FENCE_LENGTH

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
TEMPLATE_PLACEHOLDERS = ("filePath", "fileName", "fileBase", "fileExt", "timeStamp")

INSTRUCTION_COMMAND_ENV = "MDCC_INSTRUCTION_COMMAND"
DEFAULT_INSTRUCTION_COMMAND = "ai chat --quiet true --instructions"

BANNER = (
    "MDCC - Markdown Context Creator CLI, Version {version}\n"
    "Assemble Markdown context from files, with line filters and AI instructions.\n"
)


def default_parallelism() -> int:
    """Number of concurrent instruction runs used when no group sets `--threads`."""
    return max(1, os.cpu_count() or 1)
