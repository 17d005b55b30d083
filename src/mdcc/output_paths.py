from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from mdcc.config import TEMPLATE_PLACEHOLDERS, TIMESTAMP_FORMAT
from mdcc.logging import logger

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def template_values(file_name: str | Path, now: datetime | None = None) -> dict[str, str]:
    """Compute the placeholder values for one file.

    Args:
        file_name (str | Path): the source file
        now (datetime | None): the time used for `{timeStamp}`; defaults to now

    Returns:
        dict[str, str]: values keyed by placeholder name
    """
    p = Path(file_name)
    parent = str(p.parent).replace("\\", "/")
    return {
        "filePath": parent,
        "fileName": p.name,
        "fileBase": p.stem,
        "fileExt": p.suffix.removeprefix("."),
        "timeStamp": (now or datetime.now()).strftime(TIMESTAMP_FORMAT),  # noqa: DTZ005
    }


def resolve_output_path(file_name: str | Path, template: str, now: datetime | None = None) -> Path:
    """Substitute the placeholders of an output template for one file.

    Known placeholders are `{filePath}`, `{fileName}`, `{fileBase}`, `{fileExt}` and
    `{timeStamp}`; anything else between braces is left as is.

    Args:
        file_name (str | Path): the source file
        template (str): the `--save-file-output` template
        now (datetime | None): the time used for `{timeStamp}`

    Returns:
        Path: the concrete output path
    """
    values = template_values(file_name, now)

    def replace(m: re.Match[str]) -> str:
        key = m.group(1)
        return values[key] if key in TEMPLATE_PLACEHOLDERS else m.group(0)

    return Path(_PLACEHOLDER.sub(replace, template))


def save_output(file_name: str | Path, template: str, content: str) -> Path:
    """Write `content` to the path resolved from `template`, overwriting it.

    Returns:
        Path: the file written
    """
    target = resolve_output_path(file_name, template)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.info("Saved file output", source=str(file_name), target=str(target))
    return target
