"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from lambdactl.archive.assembler import ArchiveJob

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_archive_table(title: str = "Archives") -> Table:
    """Create a pre-configured table for displaying archive results.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for archive display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Archive", no_wrap=True)
    table.add_column("State", style="muted")
    table.add_column("Files", style="info", justify="right")
    table.add_column("Excluded", style="muted", justify="right")
    return table


def format_archive_row(job: ArchiveJob) -> tuple[str, str, str, str]:
    """Format an archive job as a table row.

    Args:
        job: The archive job to format.

    Returns:
        Tuple of (archive, state, files, excluded) with Rich markup.
    """
    style = "success" if job.state.value == "done" else "error"
    return (
        f"[text]{job.zip_path}[/]",
        f"[{style}]{job.state.value}[/]",
        str(len(job.included)),
        str(len(job.excluded)),
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
