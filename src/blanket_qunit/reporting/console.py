"""Console writer mirroring the build tool's log/verbose channels."""
from __future__ import annotations

from typing import Optional

import click

from .formatter import Formatter, PlainFormatter


class Console:
    """Human-readable output that streams to stdout.

    ``verbose`` selects between the detailed channel (full test names, OK
    markers) and the compact one (one character per test).
    """

    def __init__(self, *, verbose: bool = False, formatter: Optional[Formatter] = None) -> None:
        self.verbose = verbose
        self.formatter = formatter or PlainFormatter()

    def style(self, text: str, color: Optional[str] = None, *, bold: bool = False) -> str:
        return self.formatter.style(text, color, bold=bold)

    def style_lines(self, value: object, color: Optional[str] = None) -> str:
        return self.formatter.style_lines(value, color)

    def write(self, text: str) -> None:
        click.echo(text, nl=False, color=self.formatter.color)

    def writeln(self, text: str = "") -> None:
        click.echo(text, color=self.formatter.color)

    def error(self, message: Optional[str] = None) -> None:
        if message is None:
            self.writeln(self.style("ERROR", "red"))
            return
        self._prefixed(message, "red")

    def ok(self, message: Optional[str] = None) -> None:
        if message is None:
            self.writeln(self.style("OK", "green"))
            return
        self._prefixed(message, "green")

    def subhead(self, text: str) -> None:
        self.writeln()
        self.writeln(self.style(text, bold=True))

    def warn(self, message: str) -> None:
        self.writeln(self.style(f"Warning: {message}", "yellow"))

    def passthrough(self, text: object) -> None:
        click.echo(str(text), color=self.formatter.color)

    def _prefixed(self, message: str, color: str) -> None:
        marker = self.style(">>", color)
        for line in str(message).split("\n"):
            self.writeln(f"{marker} {line}")
