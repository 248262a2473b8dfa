"""Core models and helpers exposed at the package level."""
from .coverage import FileCoverage, LineCoverage, classify_lines, coverage_totals
from .events import BridgeEvent, EventBus, event_bus
from .models import FailureQueue, PendingAssertionFailure, RunStatus, SessionContext, TaskOptions

__all__ = [
    "BridgeEvent",
    "EventBus",
    "FailureQueue",
    "FileCoverage",
    "LineCoverage",
    "PendingAssertionFailure",
    "RunStatus",
    "SessionContext",
    "TaskOptions",
    "classify_lines",
    "coverage_totals",
    "event_bus",
]
