"""Text styling backends used by the console."""
from __future__ import annotations

from typing import Optional

import click


class Formatter:
    """Interface for styling console text."""

    #: ``color`` argument for ``click.echo``; None strips ANSI codes off non-terminals
    color: Optional[bool] = None

    def style(self, text: str, color: Optional[str] = None, *, bold: bool = False) -> str:  # pragma: no cover
        raise NotImplementedError

    def style_lines(self, value: object, color: Optional[str] = None) -> str:
        """Style every line of ``value`` separately so multi-line text keeps its color."""

        return "\n".join(self.style(line, color) for line in str(value).split("\n"))


class PlainFormatter(Formatter):
    def style(self, text: str, color: Optional[str] = None, *, bold: bool = False) -> str:
        return text


class AnsiFormatter(Formatter):
    """ANSI escape styling through click."""

    def __init__(self, color: Optional[bool] = True) -> None:
        self.color = color

    def style(self, text: str, color: Optional[str] = None, *, bold: bool = False) -> str:
        if not color and not bold:
            return text
        return click.style(text, fg=color, bold=bold or None)


def make_formatter(use_color: bool) -> Formatter:
    return AnsiFormatter(color=None) if use_color else PlainFormatter()
