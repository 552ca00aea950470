"""Console output abstraction.

Services report progress through ConsoleProtocol instead of printing, so the
CLI can render with Rich while tests capture every line with MockConsole.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # step-by-step progress
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Protocol for console output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...

    def status(self, message: str) -> AbstractContextManager[None]:
        """Show a transient status (spinner) while the block runs."""
        ...


class RichConsole:
    """Console implementation using Rich, writing to stderr.

    Progress goes to stderr so stdout stays clean for scripting.
    """

    def __init__(self) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        self._console = Console(stderr=True)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green bold",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow bold",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, highlight=False)
        else:
            self._console.print(message, highlight=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green bold]OK[/green bold] {message}", highlight=False)

    def error(self, message: str) -> None:
        self._console.print(f"[white on red bold]error:[/white on red bold] {message}", highlight=False)

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow bold]warning:[/yellow bold] {message}", highlight=False)

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {message}", highlight=False)

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{message}[/blue bold]")

    def newline(self) -> None:
        self._console.print()

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        with self._console.status(message, spinner="dots"):
            yield


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        self.outputs.append(OutputRecord(message, Style.DIM))
        yield

    # Test helper methods

    def clear(self) -> None:
        self.outputs.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def has_success(self) -> bool:
        return any(o.style == Style.SUCCESS for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
