"""Task configuration loading and execution."""

from .loader import build_options, expand_sources, load_task_config, merge_options, resolve_target
from .models import ResolvedTarget, TargetConfig, TaskConfig
from .runner import TaskOutcome, run_targets, run_task

__all__ = [
    "ResolvedTarget",
    "TargetConfig",
    "TaskConfig",
    "TaskOutcome",
    "build_options",
    "expand_sources",
    "load_task_config",
    "merge_options",
    "resolve_target",
    "run_targets",
    "run_task",
]
