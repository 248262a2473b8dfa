from __future__ import annotations

from typing import Any, List, Tuple

import pytest

from blanket_qunit.core.aggregator import RunContext
from blanket_qunit.core.events import EventBus
from blanket_qunit.reporting import Console


class HaltCounter:
    """Stands in for a bridge when handlers are exercised directly."""

    def __init__(self) -> None:
        self.halts = 0

    def halt(self) -> None:
        self.halts += 1


class BusRecorder:
    def __init__(self, bus: EventBus) -> None:
        self.received: List[Tuple[Any, ...]] = []
        bus.subscribe("*", self)

    def __call__(self, name: str, *args: Any) -> None:
        self.received.append((name, *args))

    @property
    def names(self) -> List[str]:
        return [item[0] for item in self.received]


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> BusRecorder:
    return BusRecorder(bus)


@pytest.fixture
def make_context(bus: EventBus):
    def _make(*, verbose: bool = False, threshold: float = 20, formatter=None) -> RunContext:
        ctx = RunContext(
            console=Console(verbose=verbose, formatter=formatter),
            bus=bus,
            threshold=threshold,
        )
        ctx.bridge = HaltCounter()
        return ctx

    return _make
