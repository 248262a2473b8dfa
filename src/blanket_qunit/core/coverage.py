"""Per-file coverage classification and threshold checks."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

LineHits = Union[Mapping[Any, Optional[int]], Sequence[Optional[int]]]


@dataclass(frozen=True)
class LineCoverage:
    hits: int = 0
    misses: int = 0
    sloc: int = 0

    @property
    def percent(self) -> float:
        return self.hits / self.sloc * 100 if self.sloc else 0.0


@dataclass(frozen=True)
class FileCoverage:
    filename: str
    covered_lines: int
    total_lines: int
    threshold: float

    @property
    def percent(self) -> float:
        # A file without executable lines can never clear the threshold.
        if not self.total_lines:
            return 0.0
        return self.covered_lines / self.total_lines * 100

    @property
    def passed(self) -> bool:
        return self.percent > self.threshold

    def describe(self) -> str:
        result = "PASS" if self.passed else "FAIL"
        shown = math.floor(self.percent)
        return (
            f"{result} [{shown:>2}%] : {self.filename} "
            f"({self.covered_lines} / {self.total_lines})"
        )


def classify_lines(source: Sequence[str], hits: LineHits) -> LineCoverage:
    """Count hits, misses and executable lines for one instrumented file.

    ``hits`` is keyed by 1-based line number; ``source[0]`` is line 1. A
    missing or ``None`` entry marks a non-executable line.
    """

    covered = missed = 0
    for number in range(1, len(source) + 1):
        value = _line_value(hits, number)
        if value is None:
            continue
        if value == 0:
            missed += 1
        else:
            covered += 1
    return LineCoverage(hits=covered, misses=missed, sloc=covered + missed)


def coverage_totals(payload: Any) -> Tuple[int, int]:
    """Return ``(covered_lines, total_lines)`` from a coverage-file-done payload.

    Accepts the raw totals pair the bridge sends or a per-line map carrying a
    ``source`` list next to the line hits.
    """

    if isinstance(payload, Mapping):
        source = payload.get("source")
        if not isinstance(source, (list, tuple)):
            raise ValueError("coverage map must include a 'source' list")
        hits = payload.get("lines", payload)
        counted = classify_lines(source, hits)
        return counted.hits, counted.sloc
    if isinstance(payload, (list, tuple)) and len(payload) >= 2:
        return int(payload[0]), int(payload[1])
    raise ValueError(f"Unsupported coverage payload: {payload!r}")


def _line_value(hits: LineHits, number: int) -> Optional[int]:
    if isinstance(hits, Mapping):
        value = hits.get(number, hits.get(str(number)))
    else:
        value = hits[number] if number < len(hits) else None
    if value is None:
        return None
    return int(value)
