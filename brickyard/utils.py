"""Shared console helpers for Brickyard.

Provides the module-level Rich console, the ``ScaffoldLogger`` used for
per-file status lines and conflict prompts, and a table renderer for
generation results.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

if TYPE_CHECKING:
    from brickyard.generator.target import GeneratedFile

console = Console()


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STATUS_COLORS: dict[str, str] = {
    "created": "green",
    "overwritten": "green",
    "appended": "bright_blue",
    "skipped": "yellow",
    "identical": "cyan",
}


def print_generated_files(files: Sequence[GeneratedFile], title: str = "Generated files") -> None:
    """Print one row per generated file with its coloured status."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Status", no_wrap=True)
    table.add_column("Path")

    for generated in files:
        status = generated.status.value
        color = STATUS_COLORS.get(status, "white")
        table.add_row(f"[{color}]{status}[/{color}]", generated.path)

    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# ScaffoldLogger
# ---------------------------------------------------------------------------


class ScaffoldLogger:
    """Console front end used while generating files.

    Status lines are *delayed*: they are buffered until :meth:`flush` so
    that a run's file list prints as one block after any conflict prompts.
    The logger also satisfies the ``Prompter`` protocol, so it can be handed
    to a ``DirectoryGeneratorTarget`` as its prompter.
    """

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console
        self._queue: list[str] = []

    def info(self, message: str) -> None:
        self.console.print(message)

    def detail(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    def delayed(self, message: str) -> None:
        self._queue.append(message)

    def flush(self) -> None:
        """Print and clear every delayed message."""
        for message in self._queue:
            self.console.print(message)
        self._queue.clear()

    def prompt(self, message: str) -> str:
        return Prompt.ask(f"[bright_yellow]{message}[/bright_yellow]", console=self.console)

    @property
    def pending(self) -> list[str]:
        return list(self._queue)
