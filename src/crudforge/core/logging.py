# src/crudforge/core/logging.py
"""Console logging built on rich."""

import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Sequence

from rich.console import Console
from rich.table import Table


def _style(style: str) -> Callable[[Any], str]:
    return lambda text: f"[{style}]{text}[/{style}]"


# * Markup helpers used when naming resources in log lines
color_palette: Dict[str, Callable[[Any], str]] = {
    "resource": _style("bold cyan"),
    "relation": _style("magenta"),
    "method": _style("bold yellow"),
    "path": _style("green"),
    "dim": _style("dim"),
}

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}


class Logger:
    """Leveled logger that renders through a rich Console."""

    def __init__(self, console: Console | None = None, level: str = "info"):
        self.console = console or Console(stderr=True)
        self.level = LEVELS[level]
        self._indent = 0

    def set_level(self, level: str) -> None:
        self.level = LEVELS[level]

    def _emit(self, level: str, prefix: str, message: str) -> None:
        if LEVELS[level] < self.level:
            return
        pad = "  " * self._indent
        self.console.print(f"{pad}{prefix} {message}", highlight=False)

    def debug(self, message: str) -> None:
        self._emit("debug", "[dim]·[/dim]", message)

    def info(self, message: str) -> None:
        self._emit("info", "[blue]i[/blue]", message)

    def success(self, message: str) -> None:
        self._emit("info", "[green]✓[/green]", message)

    def warn(self, message: str) -> None:
        self._emit("warn", "[yellow]![/yellow]", message)

    def error(self, message: str) -> None:
        self._emit("error", "[bold red]✗[/bold red]", message)

    def section(self, title: str) -> None:
        if self.level <= LEVELS["info"]:
            self.console.rule(f"[bold]{title}[/bold]")

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._indent += 1
        try:
            yield
        finally:
            self._indent -= 1

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log how long the wrapped block took."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = (time.perf_counter() - start) * 1000
            self.info(f"{label} {color_palette['dim'](f'({elapsed:.2f}ms)')}")

    def table(self, headers: Sequence[str], rows: List[Sequence[Any]]) -> None:
        if self.level > LEVELS["info"]:
            return
        table = Table(box=None, padding=(0, 1))
        for header in headers:
            table.add_column(str(header), style="cyan")
        for row in rows:
            table.add_row(*[str(cell) for cell in row])
        self.console.print(table)


# All modules import this single logger instance.
log = Logger()
