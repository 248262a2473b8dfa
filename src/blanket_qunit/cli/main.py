"""CLI entry point for blanket-qunit."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from colorama import init as colorama_init

from blanket_qunit import __version__, bootstrap
from blanket_qunit.bridge import BrowserBridge, ReplayBridge, bridge_manager
from blanket_qunit.reporting import Console, make_formatter
from blanket_qunit.task import (
    ResolvedTarget,
    build_options,
    expand_sources,
    load_task_config,
    merge_options,
    resolve_target,
    run_targets,
)


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"blanket-qunit {__version__}")
    raise click.exceptions.Exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", is_flag=True, help="Print full test names and per-test results.")
@click.option("--debug", is_flag=True, help="Enable debug logging output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the blanket-qunit version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """Run QUnit pages with BlanketJS coverage in a headless browser."""

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    bootstrap()
    ctx.obj = CliState(verbose=verbose)


@cli.command()
@click.argument("files", nargs=-1)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML task configuration file.",
)
@click.option("--target", "-t", "target_names", multiple=True, help="Target to run (repeatable, default all).")
@click.option("--url", "urls", multiple=True, help="Extra URL to test before the files (repeatable).")
@click.option("--threshold", type=int, help="Minimum coverage percentage a file must exceed.")
@click.option("--timeout", type=int, help="Milliseconds without bridge output before timing out.")
@click.option("--inject", type=str, help="Bridge script injected into each page.")
@click.option(
    "--bridge",
    "bridge_name",
    type=click.Choice(["process", "replay"]),
    default="process",
    show_default=True,
    help="How pages are run.",
)
@click.option(
    "--recordings",
    type=click.Path(exists=True, file_okay=False),
    help="Directory of <page>.jsonl recordings for --bridge replay.",
)
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.option("--force", is_flag=True, help="Keep running remaining targets after a failure.")
@click.pass_obj
def run(
    state: CliState,
    files: Tuple[str, ...],
    config_path: Optional[str],
    target_names: Tuple[str, ...],
    urls: Tuple[str, ...],
    threshold: Optional[int],
    timeout: Optional[int],
    inject: Optional[str],
    bridge_name: str,
    recordings: Optional[str],
    no_color: bool,
    force: bool,
) -> None:
    """Run the test pages and report assertion and coverage results."""

    colorama_init()
    overrides: Dict[str, Any] = {
        "threshold": threshold,
        "timeout": timeout,
        "inject": inject,
        "urls": list(urls) or None,
    }
    console = Console(verbose=state.verbose, formatter=make_formatter(not no_color))
    try:
        targets = _resolve_targets(config_path, target_names, files, overrides)
        bridge = _make_bridge(bridge_name, recordings)
        outcomes = run_targets(targets, bridge=bridge, console=console, force=force)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    ok = len(outcomes) == len(targets) and all(outcome.ok for outcome in outcomes)
    raise click.exceptions.Exit(0 if ok else 1)


def _resolve_targets(
    config_path: Optional[str],
    target_names: Tuple[str, ...],
    files: Tuple[str, ...],
    overrides: Dict[str, Any],
) -> Tuple[ResolvedTarget, ...]:
    if config_path:
        config = load_task_config(config_path)
        names = target_names or tuple(target.name for target in config.targets)
        resolved = [resolve_target(config, name, overrides) for name in names]
        if files:
            cwd = Path.cwd()
            resolved = [
                ResolvedTarget(name=item.name, options=item.options, files=tuple(item.files) + expand_sources(files, cwd))
                for item in resolved
            ]
        return tuple(resolved)
    if target_names:
        raise ValueError("--target requires --config")
    if not files and not _urls_given(overrides):
        raise ValueError("Nothing to test: pass FILES, --url or --config")
    cwd = Path.cwd()
    options = build_options(merge_options(overrides), cwd)
    return (ResolvedTarget(name="default", options=options, files=expand_sources(files, cwd)),)


def _urls_given(overrides: Dict[str, Any]) -> bool:
    return bool(overrides.get("urls"))


def _make_bridge(name: str, recordings: Optional[str]) -> BrowserBridge:
    if name == ReplayBridge.name:
        if not recordings:
            raise ValueError("--bridge replay requires --recordings")
        return ReplayBridge.from_directory(Path(recordings))
    return bridge_manager.create(name)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="blanket-qunit", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
