"""Headless browser bridge abstractions."""
from __future__ import annotations

from typing import Dict, Iterator

from blanket_qunit.core.events import BridgeEvent
from blanket_qunit.core.models import TaskOptions


class BridgeError(RuntimeError):
    """The browser process could not start or died before finishing its run."""


class BrowserBridge:
    """Base interface for bridges.

    ``spawn`` yields the events of one page run in order and stops once the
    page finishes or :meth:`halt` is called.
    """

    name: str = ""

    def spawn(self, url: str, options: TaskOptions) -> Iterator[BridgeEvent]:  # pragma: no cover - interface
        raise NotImplementedError

    def halt(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class BridgeManager:
    """Registry for bridge factories keyed by name."""

    def __init__(self) -> None:
        self._factories: Dict[str, type] = {}

    def register(self, factory: type) -> None:
        name = getattr(factory, "name", "")
        if not name:
            raise ValueError(f"Bridge {factory!r} has no name")
        if name in self._factories:
            raise ValueError(f"Bridge '{name}' already registered")
        self._factories[name] = factory

    def create(self, name: str, **kwargs) -> BrowserBridge:
        factory = self._factories.get(name)
        if factory is None:
            available = ", ".join(sorted(self._factories)) or "<none>"
            raise KeyError(f"No bridge registered as {name!r}. Available: {available}")
        return factory(**kwargs)

    def names(self) -> tuple:
        return tuple(self._factories)


bridge_manager = BridgeManager()
