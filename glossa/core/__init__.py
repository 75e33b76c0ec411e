"""Core — Resolution, execution and reporting of extension runs."""

from glossa.core.context import CancellationToken, ExecutionPolicy, RunOptions, RunResult
from glossa.core.contracts import Extension, FieldContract
from glossa.core.engine import Engine, ProgressStats, get_engine, process
from glossa.core.merge import ArrayStrategy, ConflictStrategy, MergeOptions, deep_merge
from glossa.core.registry import ExtensionRegistry, get_registry
from glossa.core.report import ExecutionPhase, RunReport, RunStatus

__all__ = [
    # Descriptors
    "Extension",
    "FieldContract",
    # Running
    "Engine",
    "ProgressStats",
    "get_engine",
    "process",
    "RunOptions",
    "RunResult",
    "ExecutionPolicy",
    "CancellationToken",
    # Merge
    "ArrayStrategy",
    "ConflictStrategy",
    "MergeOptions",
    "deep_merge",
    # Registry
    "ExtensionRegistry",
    "get_registry",
    # Report
    "RunReport",
    "RunStatus",
    "ExecutionPhase",
]
