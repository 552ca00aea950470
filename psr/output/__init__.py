"""Console output for progress, warnings and release errors."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
]
