"""Folds the bridge event stream into run status, failure queue and console output."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from blanket_qunit.reporting.console import Console

from . import events
from .coverage import FileCoverage, coverage_totals
from .events import BridgeEvent, EventBus
from .models import FailureQueue, PendingAssertionFailure, RunStatus, SessionContext

if TYPE_CHECKING:
    from blanket_qunit.bridge.base import BrowserBridge

logger = logging.getLogger(__name__)

_TRACE_INDENT = re.compile(r" {4}(at)")
_PRIMITIVES = (str, int, float, bool, type(None))


@dataclass
class RunContext:
    """Mutable state for a single task invocation."""

    console: Console
    bus: EventBus
    threshold: float = 20
    bridge: Optional["BrowserBridge"] = None
    status: RunStatus = field(default_factory=RunStatus)
    session: SessionContext = field(default_factory=SessionContext)
    failures: FailureQueue = field(default_factory=FailureQueue)
    fatal: Optional[str] = None

    def halt(self) -> None:
        if self.bridge is not None:
            self.bridge.halt()


Handler = Callable[[RunContext, BridgeEvent], None]


def dispatch(ctx: RunContext, event: BridgeEvent) -> None:
    """Fold ``event`` into ``ctx`` and forward it to the event bus."""

    handler = HANDLERS.get(event.name)
    if handler is not None:
        handler(ctx, event)
    else:
        logger.debug("no handler for %s", event.name)
    ctx.bus.emit(event.name, *event.args)


def log_failed_assertions(ctx: RunContext) -> None:
    console = ctx.console
    for failure in ctx.failures.drain():
        if not console.verbose:
            console.error(failure.test_name)
        console.error("Message: " + console.style_lines(failure.message, "magenta"))
        if not _identical(failure.actual, failure.expected):
            console.error("Actual: " + console.style_lines(failure.actual, "magenta"))
            console.error("Expected: " + console.style_lines(failure.expected, "magenta"))
        if failure.source:
            console.error(_TRACE_INDENT.sub(r"  \1", str(failure.source)))
        console.writeln()


def _identical(actual: Any, expected: Any) -> bool:
    """Page-side strict equality: containers match only by identity, primitives by value."""

    if not isinstance(actual, _PRIMITIVES) or not isinstance(expected, _PRIMITIVES):
        return actual is expected
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def on_module_start(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.session.start_module(event.arg(0))


def on_module_done(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.session.finish_module(event.arg(0))


def on_test_start(ctx: RunContext, event: BridgeEvent) -> None:
    name = ctx.session.start_test(event.arg(0))
    if ctx.console.verbose:
        ctx.console.write(name + "...")


def on_assertion_log(ctx: RunContext, event: BridgeEvent) -> None:
    if event.arg(0):
        return
    ctx.failures.push(
        PendingAssertionFailure(
            test_name=ctx.session.current_test or "",
            actual=event.arg(1),
            expected=event.arg(2),
            message=event.arg(3),
            source=event.arg(4),
        )
    )


def on_test_done(ctx: RunContext, event: BridgeEvent) -> None:
    console = ctx.console
    failed = int(event.arg(1, 0) or 0)
    if failed > 0:
        if console.verbose:
            console.error()
            log_failed_assertions(ctx)
        else:
            console.write(console.style("F", "red"))
    elif console.verbose:
        console.ok()
    else:
        console.write(".")


def on_coverage_file_done(ctx: RunContext, event: BridgeEvent) -> None:
    console = ctx.console
    if not ctx.status.coverage_seen:
        console.writeln()
    covered, total = coverage_totals(event.arg(0))
    result = FileCoverage(
        filename=str(event.arg(1, "")),
        covered_lines=covered,
        total_lines=total,
        threshold=ctx.threshold,
    )
    if result.passed:
        ctx.status.coverage_pass += 1
    else:
        ctx.status.coverage_fail += 1
        console.writeln(console.style(result.describe(), "red"))


def on_coverage_done(ctx: RunContext, event: BridgeEvent) -> None:
    pass


def on_run_done(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.halt()
    failed = int(event.arg(0, 0) or 0)
    ctx.status.add_run(
        failed=failed,
        passed=int(event.arg(1, 0) or 0),
        total=int(event.arg(2, 0) or 0),
        duration_ms=int(event.arg(3, 0) or 0),
    )
    if not ctx.console.verbose:
        ctx.console.writeln()
        if failed > 0:
            log_failed_assertions(ctx)


def on_fail_load(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.halt()
    console = ctx.console
    console.write("Running PhantomJS..." if console.verbose else "...")
    console.error()
    ctx.fatal = f'PhantomJS unable to load "{event.arg(0)}" URI.'
    console.warn(ctx.fatal)


def on_fail_timeout(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.halt()
    ctx.console.writeln()
    ctx.fatal = "PhantomJS timed out, possibly due to a missing QUnit start() call."
    ctx.console.warn(ctx.fatal)


def on_console(ctx: RunContext, event: BridgeEvent) -> None:
    ctx.console.passthrough(" ".join(str(arg) for arg in event.args))


HANDLERS: Dict[str, Handler] = {
    events.MODULE_START: on_module_start,
    events.MODULE_DONE: on_module_done,
    events.TEST_START: on_test_start,
    events.ASSERTION_LOG: on_assertion_log,
    events.TEST_DONE: on_test_done,
    events.COVERAGE_FILE_DONE: on_coverage_file_done,
    events.COVERAGE_DONE: on_coverage_done,
    events.RUN_DONE: on_run_done,
    events.FAIL_LOAD: on_fail_load,
    events.FAIL_TIMEOUT: on_fail_timeout,
    events.CONSOLE: on_console,
}
