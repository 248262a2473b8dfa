"""Reporting exports."""
from .console import Console
from .formatter import AnsiFormatter, Formatter, PlainFormatter, make_formatter

__all__ = [
    "AnsiFormatter",
    "Console",
    "Formatter",
    "PlainFormatter",
    "make_formatter",
]
