"""End-of-series verdict computation and summary lines."""
from __future__ import annotations

from dataclasses import dataclass

from blanket_qunit.reporting.console import Console

from .models import RunStatus


@dataclass(frozen=True)
class Verdict:
    coverage_ok: bool
    tests_ok: bool

    @property
    def ok(self) -> bool:
        return self.coverage_ok and self.tests_ok


def compute_verdict(status: RunStatus) -> Verdict:
    # A run that asserts nothing does not count as passing.
    return Verdict(
        coverage_ok=status.coverage_fail == 0,
        tests_ok=status.failed == 0 and status.total > 0,
    )


def coverage_line(status: RunStatus, threshold: float) -> str:
    minimum = f"({threshold}% minimum)"
    if status.coverage_fail > 0:
        return f"{status.coverage_fail} files failed coverage {minimum}"
    return f"{status.coverage_pass} files passed coverage {minimum}"


def assertion_line(status: RunStatus) -> str:
    if status.failed > 0:
        return f"{status.failed}/{status.total} assertions failed ({status.duration_ms}ms)"
    if status.total == 0:
        return f"0/0 assertions ran ({status.duration_ms}ms)"
    return f"{status.total} tests passed ({status.duration_ms}ms)"


def print_summary(console: Console, status: RunStatus, threshold: float) -> Verdict:
    verdict = compute_verdict(status)
    console.writeln()
    console.write("Code Coverage Results: ")
    console.writeln(console.style(coverage_line(status, threshold), "green" if verdict.coverage_ok else "red"))
    console.write("Unit Test Results: ")
    console.writeln(console.style(assertion_line(status), "green" if verdict.tests_ok else "red"))
    return verdict
