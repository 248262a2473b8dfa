"""Task entry points: one invocation per target, verdict and completion signal."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from blanket_qunit.bridge.base import BrowserBridge
from blanket_qunit.core.aggregator import RunContext
from blanket_qunit.core.driver import SeriesDriver, SeriesResult
from blanket_qunit.core.events import EventBus, event_bus
from blanket_qunit.core.models import RunStatus, TaskOptions
from blanket_qunit.core.summary import Verdict, print_summary
from blanket_qunit.reporting.console import Console

from .models import ResolvedTarget

logger = logging.getLogger(__name__)

TASK_NAME = "blanket_qunit"
SUCCESS_MESSAGE = "No issues found."
ISSUES_MESSAGE = "Issues were found."

DoneCallback = Callable[[bool], None]


@dataclass(frozen=True)
class TaskOutcome:
    ok: bool
    message: str
    status: RunStatus
    series: SeriesResult
    verdict: Optional[Verdict] = None


def run_task(
    options: TaskOptions,
    files: Sequence[str],
    *,
    bridge: BrowserBridge,
    console: Optional[Console] = None,
    bus: Optional[EventBus] = None,
    done: Optional[DoneCallback] = None,
) -> TaskOutcome:
    """Test ``options.urls`` followed by ``files`` and report the combined verdict.

    ``done`` receives the overall result exactly once, on every path. Errors
    other than fatal bridge failures are re-raised after ``done(False)``.
    """

    finish = _once(done)
    console = console or Console()
    ctx = RunContext(console=console, bus=bus or event_bus, threshold=options.threshold)
    urls = list(options.urls) + list(files)
    try:
        series = SeriesDriver(ctx, bridge, options).run(urls)
    except Exception:
        finish(False)
        raise
    if series.aborted:
        outcome = TaskOutcome(ok=False, message=series.fatal or "", status=ctx.status, series=series)
    else:
        verdict = print_summary(console, ctx.status, options.threshold)
        if verdict.ok:
            console.ok(SUCCESS_MESSAGE)
            message = SUCCESS_MESSAGE
        else:
            console.warn(ISSUES_MESSAGE)
            message = ISSUES_MESSAGE
        outcome = TaskOutcome(ok=verdict.ok, message=message, status=ctx.status, series=series, verdict=verdict)
    logger.debug("task finished ok=%s after %d url(s)", outcome.ok, series.processed)
    finish(outcome.ok)
    return outcome


def run_targets(
    targets: Sequence[ResolvedTarget],
    *,
    bridge: BrowserBridge,
    console: Optional[Console] = None,
    bus: Optional[EventBus] = None,
    force: bool = False,
) -> List[TaskOutcome]:
    """Run targets in order; a failed target stops the rest unless ``force``."""

    console = console or Console()
    outcomes: List[TaskOutcome] = []
    for target in targets:
        console.subhead(f'Running "{TASK_NAME}:{target.name}" ({TASK_NAME}) task')
        outcome = run_task(target.options, target.files, bridge=bridge, console=console, bus=bus)
        outcomes.append(outcome)
        if not outcome.ok and not force:
            console.writeln()
            console.writeln(console.style("Aborted due to warnings.", "red"))
            break
    return outcomes


def _once(callback: Optional[DoneCallback]) -> DoneCallback:
    called = False

    def finish(ok: bool) -> None:
        nonlocal called
        if called:
            raise RuntimeError("Task completion already signalled")
        called = True
        if callback is not None:
            callback(ok)

    return finish
