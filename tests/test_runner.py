from __future__ import annotations

import sys
from typing import List

import pytest

from blanket_qunit.bridge import BridgeError, BrowserBridge, ProcessBridge, ReplayBridge
from blanket_qunit.core import events
from blanket_qunit.core.aggregator import RunContext
from blanket_qunit.core.driver import SeriesDriver, SeriesState
from blanket_qunit.core.events import BridgeEvent, EventBus
from blanket_qunit.core.models import RunStatus, TaskOptions
from blanket_qunit.reporting import Console
from blanket_qunit.task import ResolvedTarget, run_targets, run_task
from blanket_qunit.task.runner import _once


def ev(name, *args) -> BridgeEvent:
    return BridgeEvent(name, tuple(args))


def passing_page(module: str, coverage=(9, 10), filename="src/app.js") -> List[BridgeEvent]:
    return [
        ev(events.MODULE_START, module),
        ev(events.TEST_START, "works"),
        ev(events.ASSERTION_LOG, True, 1, 1, "ok", None),
        ev(events.TEST_DONE, "works", 0, 1, 1),
        ev(events.MODULE_DONE, module, 0, 1, 1),
        ev(events.COVERAGE_FILE_DONE, list(coverage), filename),
        ev(events.COVERAGE_DONE, {}),
        ev(events.RUN_DONE, 0, 1, 1, 4),
    ]


class DoneSpy:
    def __init__(self) -> None:
        self.calls: List[bool] = []

    def __call__(self, ok: bool) -> None:
        self.calls.append(ok)


def test_two_page_scenario_fails_on_coverage_and_assertions(bus, capsys) -> None:
    bridge = ReplayBridge(
        {
            "a.html": [
                ev(events.TEST_START, "a1"),
                ev(events.TEST_DONE, "a1", 0, 3, 3),
                ev(events.COVERAGE_FILE_DONE, [6, 10], "a.js"),
                ev(events.RUN_DONE, 0, 3, 3, 5),
            ],
            "b.html": [
                ev(events.TEST_START, "b1"),
                ev(events.ASSERTION_LOG, False, 1, 2, "b broke", None),
                ev(events.TEST_DONE, "b1", 1, 2, 3),
                ev(events.COVERAGE_FILE_DONE, [3, 10], "b.js"),
                ev(events.RUN_DONE, 1, 2, 3, 7),
            ],
        }
    )
    done = DoneSpy()
    outcome = run_task(
        TaskOptions(threshold=50),
        ["a.html", "b.html"],
        bridge=bridge,
        console=Console(),
        bus=bus,
        done=done,
    )
    status = outcome.status
    assert (status.coverage_pass, status.coverage_fail) == (1, 1)
    assert (status.total, status.failed, status.passed, status.duration_ms) == (6, 1, 5, 12)
    assert outcome.verdict is not None
    assert not outcome.verdict.coverage_ok
    assert not outcome.verdict.tests_ok
    assert not outcome.ok
    assert outcome.series.state is SeriesState.COMPLETED
    assert done.calls == [False]
    out = capsys.readouterr().out
    assert "FAIL [30%] : b.js (3 / 10)" in out
    assert "Code Coverage Results: 1 files failed coverage (50% minimum)" in out
    assert "Unit Test Results: 1/6 assertions failed (12ms)" in out
    assert out.rstrip().endswith("Warning: Issues were found.")


def test_load_failure_aborts_before_the_next_page(bus, recorder, capsys) -> None:
    bridge = ReplayBridge({"b.html": passing_page("b")})
    done = DoneSpy()
    outcome = run_task(TaskOptions(), ["a.html", "b.html"], bridge=bridge, console=Console(), bus=bus, done=done)
    assert bridge.spawned == ["a.html"]
    assert outcome.status == RunStatus()
    assert outcome.series.state is SeriesState.ABORTED
    assert outcome.verdict is None
    assert outcome.message == 'PhantomJS unable to load "a.html" URI.'
    assert done.calls == [False]
    assert recorder.names == [events.SPAWN, events.FAIL_LOAD]
    assert "Code Coverage Results" not in capsys.readouterr().out


def test_fatal_error_on_a_later_page_skips_the_summary(bus, capsys) -> None:
    bridge = ReplayBridge({"a.html": passing_page("a"), "b.html": [ev(events.FAIL_TIMEOUT)]})
    outcome = run_task(TaskOptions(), ["a.html", "b.html", "c.html"], bridge=bridge, console=Console(), bus=bus)
    assert bridge.spawned == ["a.html", "b.html"]
    assert outcome.series.processed == 2
    assert not outcome.ok
    out = capsys.readouterr().out
    assert "timed out" in out
    assert "Unit Test Results" not in out


def test_zero_assertions_is_a_failure(bus, capsys) -> None:
    bridge = ReplayBridge({"empty.html": [ev(events.RUN_DONE, 0, 0, 0, 3)]})
    outcome = run_task(TaskOptions(), ["empty.html"], bridge=bridge, console=Console(), bus=bus)
    assert outcome.verdict is not None
    assert outcome.verdict.coverage_ok
    assert not outcome.verdict.tests_ok
    assert not outcome.ok
    assert "Unit Test Results: 0/0 assertions ran (3ms)" in capsys.readouterr().out


def test_clean_run_reports_no_issues(bus, capsys) -> None:
    bridge = ReplayBridge({"index.html": passing_page("app")})
    done = DoneSpy()
    outcome = run_task(
        TaskOptions(urls=("http://localhost:8000/index.html",)),
        [],
        bridge=bridge,
        console=Console(),
        bus=bus,
        done=done,
    )
    assert outcome.ok
    assert done.calls == [True]
    out = capsys.readouterr().out
    assert out.startswith("Testing http://localhost:8000/index.html.\n")
    assert "Code Coverage Results: 1 files passed coverage (20% minimum)" in out
    assert "Unit Test Results: 1 tests passed (4ms)" in out
    assert out.rstrip().endswith(">> No issues found.")


def test_urls_run_before_files(bus) -> None:
    bridge = ReplayBridge({"first": passing_page("x"), "second.html": passing_page("y")})
    run_task(TaskOptions(urls=("first",)), ["second.html"], bridge=bridge, console=Console(), bus=bus)
    assert bridge.spawned == ["first", "second.html"]
    assert bridge.halts == 2


def test_module_name_resets_for_each_page(bus) -> None:
    bridge = ReplayBridge(
        {
            "a.html": [ev(events.MODULE_START, "A"), ev(events.RUN_DONE, 0, 1, 1, 1)],
            "b.html": [ev(events.TEST_START, "loose"), ev(events.RUN_DONE, 0, 1, 1, 1)],
        }
    )
    ctx = RunContext(console=Console(), bus=bus)
    driver = SeriesDriver(ctx, bridge, TaskOptions())
    assert driver.state is SeriesState.IDLE
    result = driver.run(["a.html", "b.html"])
    assert result.state is SeriesState.COMPLETED
    assert driver.state is SeriesState.COMPLETED
    assert ctx.session.current_test == "loose"
    with pytest.raises(RuntimeError):
        driver.run(["a.html"])


def test_spawn_is_announced_on_the_bus(bus, recorder) -> None:
    bridge = ReplayBridge({"a.html": [ev(events.RUN_DONE, 0, 1, 1, 1), ev(events.CONSOLE, "after halt")]})
    run_task(TaskOptions(), ["a.html"], bridge=bridge, console=Console(), bus=bus)
    assert recorder.received == [(events.SPAWN, "a.html"), (events.RUN_DONE, 0, 1, 1, 1)]


class BrokenBridge(BrowserBridge):
    name = "broken"

    def __init__(self) -> None:
        self.spawned: List[str] = []

    def spawn(self, url, options):
        self.spawned.append(url)
        raise BridgeError("browser binary not found")

    def halt(self) -> None:
        pass


def test_bridge_errors_abort_the_series(bus, capsys) -> None:
    bridge = BrokenBridge()
    done = DoneSpy()
    outcome = run_task(TaskOptions(), ["a.html", "b.html"], bridge=bridge, console=Console(), bus=bus, done=done)
    assert bridge.spawned == ["a.html"]
    assert outcome.series.aborted
    assert outcome.message == "browser binary not found"
    assert done.calls == [False]
    assert "Warning: browser binary not found" in capsys.readouterr().out


def test_malformed_coverage_payload_still_signals_completion(bus) -> None:
    bridge = ReplayBridge({"a.html": [ev(events.COVERAGE_FILE_DONE, None, "x.js"), ev(events.RUN_DONE, 0, 1, 1, 1)]})
    done = DoneSpy()
    with pytest.raises(ValueError) as exc:
        run_task(TaskOptions(), ["a.html"], bridge=bridge, console=Console(), bus=bus, done=done)
    assert "Unsupported coverage payload" in str(exc.value)
    assert done.calls == [False]


def test_unknown_command_token_still_signals_completion(bus) -> None:
    done = DoneSpy()
    options = TaskOptions(command=(sys.executable, "{page}"))
    with pytest.raises(ValueError) as exc:
        run_task(options, ["a.html"], bridge=ProcessBridge(), console=Console(), bus=bus, done=done)
    assert "page" in str(exc.value)
    assert done.calls == [False]


def test_completion_can_only_be_signalled_once() -> None:
    done = DoneSpy()
    finish = _once(done)
    finish(True)
    with pytest.raises(RuntimeError):
        finish(False)
    assert done.calls == [True]


def _target(name: str, files) -> ResolvedTarget:
    return ResolvedTarget(name=name, options=TaskOptions(), files=tuple(files))


def test_failed_target_stops_the_remaining_ones(bus, capsys) -> None:
    bridge = ReplayBridge({"good.html": passing_page("g")})
    targets = [_target("broken", ["missing.html"]), _target("good", ["good.html"])]
    outcomes = run_targets(targets, bridge=bridge, console=Console(), bus=bus)
    assert [outcome.ok for outcome in outcomes] == [False]
    out = capsys.readouterr().out
    assert 'Running "blanket_qunit:broken" (blanket_qunit) task' in out
    assert "Aborted due to warnings." in out

    forced = run_targets(targets, bridge=bridge, console=Console(), bus=bus, force=True)
    assert [outcome.ok for outcome in forced] == [False, True]
