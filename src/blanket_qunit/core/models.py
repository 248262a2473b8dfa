"""Aggregation state shared by the event handlers of one task invocation."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Optional, Sequence, Set


@dataclass
class RunStatus:
    """Cumulative assertion and coverage counters across every URL."""

    failed: int = 0
    passed: int = 0
    total: int = 0
    duration_ms: int = 0
    coverage_pass: int = 0
    coverage_fail: int = 0

    def add_run(self, failed: int, passed: int, total: int, duration_ms: int) -> None:
        self.failed += failed
        self.passed += passed
        self.total += total
        self.duration_ms += duration_ms

    @property
    def coverage_seen(self) -> bool:
        return self.coverage_pass > 0 or self.coverage_fail > 0


@dataclass(frozen=True)
class PendingAssertionFailure:
    test_name: str
    message: Any
    actual: Any = None
    expected: Any = None
    source: Optional[str] = None


@dataclass
class SessionContext:
    """Tracks the most recently started module and test."""

    current_module: Optional[str] = None
    current_test: Optional[str] = None
    unfinished: Set[str] = field(default_factory=set)

    def start_module(self, name: str) -> None:
        self.unfinished.add(name)
        self.current_module = name

    def finish_module(self, name: str) -> None:
        self.unfinished.discard(name)

    def start_test(self, name: str) -> str:
        if self.current_module:
            self.current_test = f"{self.current_module} - {name}"
        else:
            self.current_test = name
        return self.current_test

    def reset_module(self) -> None:
        self.current_module = None


class FailureQueue:
    """FIFO of failed assertions waiting to be printed."""

    def __init__(self) -> None:
        self._items: Deque[PendingAssertionFailure] = deque()

    def push(self, failure: PendingAssertionFailure) -> None:
        self._items.append(failure)

    def drain(self):
        while self._items:
            yield self._items.popleft()

    def __len__(self) -> int:
        return len(self._items)


DEFAULT_COMMAND = ("phantomjs", "{inject}", "{url}", "{timeout}")


@dataclass(frozen=True)
class TaskOptions:
    timeout: int = 5000
    inject: Optional[str] = None
    urls: Sequence[str] = field(default_factory=tuple)
    threshold: int = 20
    command: Sequence[str] = DEFAULT_COMMAND
