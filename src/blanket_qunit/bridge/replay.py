"""Bridge that replays recorded event streams instead of launching a browser."""
from __future__ import annotations

import json
import posixpath
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence

from blanket_qunit.core import events
from blanket_qunit.core.events import BridgeEvent
from blanket_qunit.core.models import TaskOptions

from .base import BrowserBridge

RECORDING_SUFFIX = ".jsonl"


class ReplayBridge(BrowserBridge):
    """Serves a fixed event list per URL.

    Recordings are looked up by the full URL first, then by its basename. A
    URL without a recording replays as a load failure.
    """

    name = "replay"

    def __init__(self, recordings: Mapping[str, Sequence[BridgeEvent]] | None = None) -> None:
        self._recordings: Dict[str, List[BridgeEvent]] = {
            key: list(value) for key, value in (recordings or {}).items()
        }
        self._halted = False
        self.spawned: List[str] = []
        self.halts = 0

    @classmethod
    def from_directory(cls, directory: Path) -> "ReplayBridge":
        root = Path(directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Recordings directory not found: {root}")
        recordings = {
            path.name[: -len(RECORDING_SUFFIX)]: load_recording(path)
            for path in sorted(root.glob(f"*{RECORDING_SUFFIX}"))
        }
        return cls(recordings)

    def spawn(self, url: str, options: TaskOptions) -> Iterator[BridgeEvent]:
        self.spawned.append(url)
        self._halted = False
        recorded = self._lookup(url)
        if recorded is None:
            recorded = [BridgeEvent(events.FAIL_LOAD, (url,))]
        return self._replay(recorded)

    def halt(self) -> None:
        self._halted = True
        self.halts += 1

    def _replay(self, recorded: Iterable[BridgeEvent]) -> Iterator[BridgeEvent]:
        for event in recorded:
            if self._halted:
                return
            yield event

    def _lookup(self, url: str) -> List[BridgeEvent] | None:
        if url in self._recordings:
            return self._recordings[url]
        basename = posixpath.basename(url.split("?", 1)[0].rstrip("/"))
        return self._recordings.get(basename)


def load_recording(path: Path) -> List[BridgeEvent]:
    """Read one JSON array per line; blank lines are skipped."""

    recorded: List[BridgeEvent] = []
    for number, line in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            message = json.loads(line)
        except ValueError as exc:
            raise ValueError(f"{path}:{number}: invalid JSON in recording") from exc
        if not isinstance(message, list):
            raise ValueError(f"{path}:{number}: recording lines must be JSON arrays")
        recorded.append(BridgeEvent.from_message(message))
    return recorded
