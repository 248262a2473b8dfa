"""Data models for task configuration files."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from blanket_qunit.core.models import TaskOptions


@dataclass(frozen=True)
class TargetConfig:
    name: str
    src: Sequence[str] = field(default_factory=tuple)
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TaskConfig:
    options: Mapping[str, Any]
    targets: Sequence[TargetConfig]
    config_dir: Path

    def target(self, name: str) -> TargetConfig:
        for target in self.targets:
            if target.name == name:
                return target
        available = ", ".join(t.name for t in self.targets) or "<none>"
        raise KeyError(f"Unknown target '{name}'. Available targets: {available}")


@dataclass(frozen=True)
class ResolvedTarget:
    name: str
    options: TaskOptions
    files: Sequence[str]

    @property
    def urls(self) -> Sequence[str]:
        return tuple(self.options.urls) + tuple(self.files)
