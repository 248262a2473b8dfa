"""Bridge event names and the shared publish/subscribe channel."""
from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence, Tuple

logger = logging.getLogger(__name__)

MODULE_START = "qunit.moduleStart"
MODULE_DONE = "qunit.moduleDone"
TEST_START = "qunit.testStart"
TEST_DONE = "qunit.testDone"
ASSERTION_LOG = "qunit.log"
RUN_DONE = "qunit.done"
SPAWN = "qunit.spawn"
COVERAGE_FILE_DONE = "blanket:fileDone"
COVERAGE_DONE = "blanket:done"
FAIL_LOAD = "fail.load"
FAIL_TIMEOUT = "fail.timeout"
CONSOLE = "console"

FATAL_EVENTS = frozenset({FAIL_LOAD, FAIL_TIMEOUT})

EventHandler = Callable[..., None]


@dataclass(frozen=True)
class BridgeEvent:
    name: str
    args: Tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def from_message(cls, message: Sequence[Any]) -> "BridgeEvent":
        if not message or not isinstance(message[0], str):
            raise ValueError(f"Bridge message must start with an event name: {message!r}")
        return cls(name=message[0], args=tuple(message[1:]))

    def arg(self, index: int, default: Any = None) -> Any:
        return self.args[index] if index < len(self.args) else default

    def to_message(self) -> List[Any]:
        return [self.name, *self.args]


class EventBus:
    """Publish/subscribe channel keyed by event name or glob pattern."""

    def __init__(self) -> None:
        self._subscribers: List[Tuple[str, EventHandler]] = []

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscribers.append((pattern, handler))

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        try:
            self._subscribers.remove((pattern, handler))
        except ValueError:
            raise KeyError(f"Handler not subscribed to '{pattern}'") from None

    def emit(self, name: str, *args: Any) -> None:
        for pattern, handler in list(self._subscribers):
            if pattern == name or fnmatch.fnmatchcase(name, pattern):
                logger.debug("bus %s -> %r", name, handler)
                handler(name, *args)

    def clear(self) -> None:
        self._subscribers.clear()


event_bus = EventBus()
