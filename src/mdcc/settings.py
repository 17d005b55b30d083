from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from mdcc.exceptions import InvalidConfigurationError

ENV_FILE = find_dotenv(usecwd=True)


def compile_patterns(patterns: Any) -> list[re.Pattern[str]]:  # noqa: ANN401
    """Compile a list of regular expressions, keeping already compiled ones.

    Args:
        patterns (Any): a string, a compiled pattern, or a list of either

    Raises:
        ValueError: if a pattern is not a valid regular expression

    Returns:
        list[re.Pattern[str]]: the compiled patterns, in the given order
    """
    if patterns is None:
        return []
    if isinstance(patterns, (str, re.Pattern)):
        patterns = [patterns]
    compiled: list[re.Pattern[str]] = []
    for p in patterns:
        if isinstance(p, re.Pattern):
            compiled.append(p)
            continue
        try:
            compiled.append(re.compile(str(p)))
        except re.error as e:
            msg = f"Invalid regular expression {p!r}: {e}"
            raise ValueError(msg) from e
    return compiled


class GroupSettings(BaseModel):
    """Options applying to one group of files (groups are separated by `--` on the command line)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    globs: list[str] = Field(..., min_length=1, description="File glob patterns.")
    exclude_globs: list[str] = Field(default_factory=list, description="Exclude glob patterns.")

    include_file_contains: list[re.Pattern[str]] = Field(
        default_factory=list,
        description="Keep only files matching one of these regexes.",
    )
    exclude_file_contains: list[re.Pattern[str]] = Field(
        default_factory=list,
        description="Drop files matching one of these regexes.",
    )
    include_line_contains: list[re.Pattern[str]] = Field(
        default_factory=list,
        description="Keep only lines matching one of these regexes.",
    )
    remove_all_lines: list[re.Pattern[str]] = Field(
        default_factory=list,
        description="Remove lines matching one of these regexes.",
    )

    lines_before: int = Field(default=0, ge=0, description="Context lines before a matching line.")
    lines_after: int = Field(default=0, ge=0, description="Context lines after a matching line.")
    line_numbers: bool = Field(default=False, description="Prefix lines with their number.")

    file_instructions: list[str] = Field(
        default_factory=list,
        description="Instructions applied in order to each file's block.",
    )
    threads: int = Field(default=0, ge=0, description="Concurrent instruction runs (0: CPU count).")
    save_file_output: str = Field(default="", description="Output path template for each file.")

    @field_validator(
        "include_file_contains",
        "exclude_file_contains",
        "include_line_contains",
        "remove_all_lines",
        mode="before",
    )
    @classmethod
    def _compile(cls, value: Any) -> list[re.Pattern[str]]:  # noqa: ANN401
        return compile_patterns(value)

    @property
    def filters_lines(self) -> bool:
        """Whether the line selection engine runs for this group."""
        return bool(self.include_line_contains or self.remove_all_lines)


class Settings(BaseModel):
    """Configuration settings for one mdcc run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    groups: list[GroupSettings] = Field(..., min_length=1, description="File groups.")
    debug: bool = Field(default=False, description="Log at DEBUG level.")
    verbose: bool = Field(default=False, description="Print progress status.")
    log_file: str = Field(default="", description="Log file path.")

    @classmethod
    def from_yaml(cls, path: Path) -> Settings:
        """Load settings from a YAML file.

        The file holds the same keys as the model, e.g.::

            verbose: true
            groups:
              - globs: ["src/**/*.py"]
                include_line_contains: ["def "]
                lines_after: 2

        Args:
            path (Path): the YAML file to load

        Raises:
            InvalidConfigurationError: if the file cannot be read or is not a mapping

        Returns:
            Settings: the validated settings
        """
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise InvalidConfigurationError(message=f"Cannot load config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise InvalidConfigurationError(message=f"Config file {path} must contain a mapping")
        return cls(**data)
