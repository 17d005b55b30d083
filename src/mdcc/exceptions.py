from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MdccError(Exception):
    """Base exception for errors in the mdcc package."""


@dataclass(frozen=True)
class InvalidConfigurationError(MdccError):
    """Raised when the command line or a config file describes an unusable run."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ArgumentFileError(MdccError):
    """Raised when an `@file` / `@@file` argument cannot be read."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Cannot read argument file {self.path}: {self.reason}"


@dataclass(frozen=True)
class InstructionExecutionError(MdccError):
    """Raised when the external instruction command fails."""

    instruction: str
    returncode: int
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or "no error output"
        return f"Instruction command failed (exit code {self.returncode}): {detail}"
