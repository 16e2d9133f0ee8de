"""Utility functions for writing generated files.

This module writes rendered output to disk, or to stdout for dry runs,
with proper error handling.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Mapping

from rich.console import Console
from rich.syntax import Syntax

from .codegen.core.errors import OutputError
from .codegen.core.generator import GenerationResult
from .logging_config import get_logger

logger = get_logger(__name__)


def write_generated_file(path: str | Path, content: str) -> Path:
    """Write a generated file, creating its directory when missing.

    Args:
        path: Absolute path of the output file.
        content: Complete file content.

    Returns:
        The path written to.

    Raises:
        OutputError: If the directory or file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        raise OutputError(f"failed to write to out file {path}: {e}") from e

    logger.info("Wrote %s", path)
    return path


def print_dry_run(content: str, path: str | Path, console: Console | None = None) -> None:
    """Print generated content instead of writing it.

    A terminal gets syntax highlighting; anything else receives the raw
    file content so it can be piped.

    Args:
        content: Complete file content.
        path: Path the content would have been written to.
        console: Console used for terminal output.
    """
    console = console or Console()
    logger.info("Dry run for %s", path)

    if console.is_terminal:
        console.rule(f"[bold cyan]{path}[/bold cyan]")
        console.print(Syntax(content, "go", theme="monokai", line_numbers=False))
    else:
        sys.stdout.write(content)
        sys.stdout.flush()


def write_outputs(
    rendered: Mapping[str, str],
    results: Mapping[str, GenerationResult],
    console: Console | None = None,
) -> list[Path]:
    """Write or print every rendered file.

    Must only be called once every group has been generated, so a failed
    run leaves no partial output behind.

    Args:
        rendered: File contents keyed by output path.
        results: Generation results keyed by output path.
        console: Console used for dry-run output.

    Returns:
        Paths of the files written to disk.

    Raises:
        OutputError: If a file cannot be written.
    """
    written = []
    for path, content in rendered.items():
        if results[path].dry_run:
            print_dry_run(content, path, console)
        else:
            written.append(write_generated_file(path, content))
    return written
