from __future__ import annotations

import click

from blanket_qunit.reporting import AnsiFormatter, Console, PlainFormatter, make_formatter


def test_plain_formatter_leaves_text_untouched() -> None:
    formatter = PlainFormatter()
    assert formatter.style("ok", "green", bold=True) == "ok"
    assert formatter.style_lines("a\nb", "red") == "a\nb"


def test_ansi_formatter_styles_each_line() -> None:
    formatter = AnsiFormatter()
    assert formatter.style("plain") == "plain"
    assert formatter.style_lines("one\ntwo", "magenta") == "\n".join(
        [click.style("one", fg="magenta"), click.style("two", fg="magenta")]
    )
    assert formatter.style_lines(None, "red") == click.style("None", fg="red")


def test_make_formatter_follows_the_color_flag() -> None:
    terminal = make_formatter(True)
    assert isinstance(terminal, AnsiFormatter)
    assert terminal.color is None
    assert AnsiFormatter().color is True
    assert isinstance(make_formatter(False), PlainFormatter)


def test_error_prefixes_every_line(capsys) -> None:
    console = Console()
    console.error()
    console.error("first\nsecond")
    assert capsys.readouterr().out == "ERROR\n>> first\n>> second\n"


def test_ok_warn_and_subhead(capsys) -> None:
    console = Console()
    console.ok()
    console.ok("No issues found.")
    console.warn("careful")
    console.subhead("Section")
    console.passthrough(42)
    assert capsys.readouterr().out == "OK\n>> No issues found.\nWarning: careful\n\nSection\n42\n"


def test_colored_markers(capsys) -> None:
    console = Console(formatter=AnsiFormatter())
    console.error("bad")
    console.subhead("Title")
    out = capsys.readouterr().out
    assert out.startswith(click.style(">>", fg="red") + " bad\n")
    assert click.style("Title", bold=True) in out
