"""YAML loader and option merging for task configuration files."""
from __future__ import annotations

import glob
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

from blanket_qunit.bridge.process import check_command
from blanket_qunit.core.models import DEFAULT_COMMAND, TaskOptions

from .models import ResolvedTarget, TargetConfig, TaskConfig

DEFAULT_OPTIONS: Dict[str, Any] = {
    "timeout": 5000,
    "inject": None,
    "urls": [],
    "threshold": 20,
    "command": list(DEFAULT_COMMAND),
}

_GLOB_CHARS = set("*?[")


def load_task_config(path: str) -> TaskConfig:
    """Load and validate a task configuration file."""
    config_path = Path(path).expanduser().resolve()
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, Mapping):
        raise ValueError("Task config must contain a mapping at the top level")
    errors = sorted(_validator.iter_errors(raw), key=lambda e: list(e.path))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise ValueError(f"Task config validation failed: {messages}")
    options = dict(raw.get("options") or {})
    targets = tuple(_parse_target(name, entry) for name, entry in raw["targets"].items())
    return TaskConfig(options=options, targets=targets, config_dir=config_path.parent)


def resolve_target(
    config: TaskConfig,
    name: str,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ResolvedTarget:
    """Merge defaults, task options, target options and overrides for one target."""

    target = config.target(name)
    merged = merge_options(config.options, target.options, overrides or {})
    options = build_options(merged, config.config_dir)
    files = expand_sources(target.src, config.config_dir)
    return ResolvedTarget(name=target.name, options=options, files=files)


def merge_options(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(DEFAULT_OPTIONS)
    for layer in layers:
        for key, value in layer.items():
            if value is None:
                continue
            merged[key] = value
    return merged


def build_options(merged: Mapping[str, Any], base: Path) -> TaskOptions:
    timeout = int(merged["timeout"])
    if timeout < 0:
        raise ValueError("timeout must be a non-negative number of milliseconds")
    threshold = int(merged["threshold"])
    if not 0 <= threshold <= 100:
        raise ValueError("threshold must be between 0 and 100")
    urls = merged.get("urls") or []
    if isinstance(urls, str):
        urls = [urls]
    command = merged.get("command") or DEFAULT_COMMAND
    if isinstance(command, str):
        raise ValueError("command must be a list of arguments")
    command = tuple(str(part) for part in command)
    check_command(command)
    inject = merged.get("inject")
    if inject:
        inject_path = Path(str(inject)).expanduser()
        if not inject_path.is_absolute():
            inject_path = base / inject_path
        inject = inject_path.as_posix()
    return TaskOptions(
        timeout=timeout,
        inject=inject or None,
        urls=tuple(str(url) for url in urls),
        threshold=threshold,
        command=command,
    )


def expand_sources(patterns: Sequence[str], base: Path) -> tuple[str, ...]:
    """Expand ``src`` patterns relative to ``base``.

    Glob patterns are matched recursively and sorted; ``!pattern`` removes
    earlier matches. Literal paths are kept even when missing so the bridge
    reports the failed load.
    """

    files: List[str] = []
    for pattern in patterns:
        exclude = pattern.startswith("!")
        text = pattern[1:] if exclude else pattern
        full = text if Path(text).is_absolute() else (base / text).as_posix()
        if _GLOB_CHARS & set(text):
            matches = sorted(
                Path(match).as_posix() for match in glob.glob(full, recursive=True) if Path(match).is_file()
            )
        else:
            matches = [full]
        if exclude:
            files = [item for item in files if item not in matches]
            continue
        for match in matches:
            if match not in files:
                files.append(match)
    return tuple(files)


def _parse_target(name: str, raw: Any) -> TargetConfig:
    if isinstance(raw, str):
        return TargetConfig(name=name, src=(raw,))
    if isinstance(raw, list):
        return TargetConfig(name=name, src=tuple(str(item) for item in raw))
    src = raw.get("src") or []
    if isinstance(src, str):
        src = [src]
    options = dict(raw.get("options") or {})
    if "urls" in raw:
        options["urls"] = raw["urls"]
    return TargetConfig(name=name, src=tuple(str(item) for item in src), options=options)


OPTIONS_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "timeout": {"type": "integer", "minimum": 0},
        "inject": {"type": ["string", "null"]},
        "urls": {"type": "array", "items": {"type": "string"}},
        "threshold": {"type": "integer", "minimum": 0, "maximum": 100},
        "command": {"type": "array", "minItems": 1, "items": {"type": "string"}},
    },
}

TARGET_SCHEMA = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {"type": "array", "items": {"type": "string"}},
        {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "src": {"type": ["string", "array"], "items": {"type": "string"}},
                "urls": {"type": "array", "items": {"type": "string"}},
                "options": OPTIONS_SCHEMA,
            },
        },
    ]
}

TASK_SCHEMA = {
    "type": "object",
    "required": ["targets"],
    "additionalProperties": False,
    "properties": {
        "options": OPTIONS_SCHEMA,
        "targets": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": TARGET_SCHEMA,
        },
    },
}
_validator = Draft7Validator(TASK_SCHEMA)
