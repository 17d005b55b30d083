from __future__ import annotations

import os
import shlex
import subprocess  # noqa: S404
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from mdcc.config import DEFAULT_INSTRUCTION_COMMAND, INSTRUCTION_COMMAND_ENV
from mdcc.exceptions import InstructionExecutionError
from mdcc.logging import logger
from mdcc.settings import ENV_FILE

if TYPE_CHECKING:
    from collections.abc import Sequence


def instruction_command() -> str:
    """Return the command running one instruction, from the environment or `.env`."""
    if ENV_FILE:
        load_dotenv(ENV_FILE, override=False)
    return os.environ.get(INSTRUCTION_COMMAND_ENV, DEFAULT_INSTRUCTION_COMMAND)


def apply_instruction(instruction: str, text: str, *, command: str) -> str:
    """Run one instruction over `text` with the external AI command.

    The instruction is appended as the last argument of `command`; the text is sent on
    stdin and the command's stdout is the result.

    Args:
        instruction (str): the instruction to apply
        text (str): the current text
        command (str): the command line, split with shell rules

    Raises:
        InstructionExecutionError: if the command is missing or exits with a non-zero code

    Returns:
        str: the transformed text
    """
    args = [*shlex.split(command), instruction]
    logger.debug("Running instruction", command=args[0], instruction=instruction[:80])
    try:
        result = subprocess.run(  # noqa: S603
            args,
            input=text,
            text=True,
            encoding="utf-8",
            capture_output=True,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise InstructionExecutionError(instruction=instruction, returncode=-1, stderr=str(e)) from e
    if result.returncode != 0:
        raise InstructionExecutionError(
            instruction=instruction,
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result.stdout.removesuffix("\n")


def apply_all_instructions(
    instructions: Sequence[str],
    text: str,
    *,
    command: str | None = None,
) -> str:
    """Apply instructions in order, each step's output feeding the next one.

    Args:
        instructions (Sequence[str]): the instructions, in application order
        text (str): the initial text
        command (str | None): the command line; defaults to `instruction_command()`

    Returns:
        str: the text after the last instruction
    """
    cmd = command or instruction_command()
    for instruction in instructions:
        text = apply_instruction(instruction, text, command=cmd)
    return text
