"""Series driver running one browser page after another."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from blanket_qunit.bridge.base import BridgeError, BrowserBridge

from .aggregator import RunContext, dispatch
from .events import SPAWN
from .models import TaskOptions

logger = logging.getLogger(__name__)


class SeriesState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SeriesResult:
    state: SeriesState
    processed: int
    fatal: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.state is SeriesState.ABORTED


class SeriesDriver:
    """Runs every URL in order, stopping at the first fatal bridge failure."""

    def __init__(self, ctx: RunContext, bridge: BrowserBridge, options: TaskOptions) -> None:
        self._ctx = ctx
        self._bridge = bridge
        self._options = options
        self.state = SeriesState.IDLE
        self.index: Optional[int] = None
        ctx.bridge = bridge

    def run(self, urls: Sequence[str]) -> SeriesResult:
        if self.state is not SeriesState.IDLE:
            raise RuntimeError(f"Series already {self.state.value}")
        ctx = self._ctx
        for index, url in enumerate(urls):
            self.state = SeriesState.RUNNING
            self.index = index
            logger.debug("running %s (%d/%d)", url, index + 1, len(urls))
            self._run_url(url)
            if ctx.fatal:
                self.state = SeriesState.ABORTED
                return SeriesResult(state=self.state, processed=index + 1, fatal=ctx.fatal)
        self.state = SeriesState.COMPLETED
        return SeriesResult(state=self.state, processed=len(urls))

    def _run_url(self, url: str) -> None:
        ctx = self._ctx
        console = ctx.console
        if console.verbose:
            console.subhead(f"Testing {url}")
        else:
            console.write(f"Testing {url}")
        ctx.session.reset_module()
        ctx.bus.emit(SPAWN, url)
        try:
            stream = self._bridge.spawn(url, self._options)
            try:
                for event in stream:
                    dispatch(ctx, event)
                    if ctx.fatal:
                        break
            finally:
                close = getattr(stream, "close", None)
                if close is not None:
                    close()
        except BridgeError as exc:
            console.writeln()
            console.error()
            ctx.fatal = str(exc)
            console.warn(ctx.fatal)
