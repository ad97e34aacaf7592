"""Shared CLI utility functions for Prompt Nest commands.

Updates:
  v0.2.0 - 2026-03-08 - Add prompt line formatting for list and search output.
  v0.1.0 - 2026-02-19 - Extract stdout logging and path helpers.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger

    from models.prompt_model import Prompt


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def describe_path(path_value: object, *, allow_missing_file: bool = False) -> str:
    """Return a human-friendly description of whether *path_value* is usable as a file."""
    if path_value is None:
        return "not set"
    resolved = Path(str(path_value)).expanduser()
    if resolved.exists():
        if resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    return message


def format_prompt_line(prompt: Prompt, *, width: int = 72) -> str:
    """Return a one-line summary of *prompt* for terminal listings."""
    text = " ".join(prompt.text.split())
    if len(text) > width:
        text = text[: width - 3].rstrip() + "..."
    tags = ", ".join(prompt.tags) if prompt.tags else "-"
    score = f" ({prompt.similarity:.3f})" if prompt.similarity is not None else ""
    marker = "" if prompt.has_embedding else " *"
    return f"{prompt.id}{score} {prompt.title}{marker}\n    {text}\n    Tags: {tags}"
