"""
RunContext — Options, mutable per-run state, and the run result.

The engine creates one RunContext per call. Nothing in it outlives
the call.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional
from uuid import uuid4

from glossa.core.errors import PipelineAbortedError
from glossa.core.merge import DEFAULT_MERGE_OPTIONS, MergeOptions
from glossa.core.report import (
    ConflictEntry,
    ExecutionPhase,
    ExtensionFailure,
    RunReport,
    RunStatus,
    SkippedExtension,
)
from glossa.tree.schema import RootNode


class ExecutionPolicy(str, Enum):
    """Run-wide failure policy."""

    STRICT = "strict"    # abort on the first failed extension
    LENIENT = "lenient"  # record, skip, continue


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Checked between extensions and before each executor phase.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class RunOptions:
    """Per-run configuration."""

    policy: ExecutionPolicy = ExecutionPolicy.STRICT
    only_ids: Optional[frozenset[str]] = None
    derive_dependencies: bool = False
    max_concurrency: Optional[int] = None
    merge: MergeOptions = DEFAULT_MERGE_OPTIONS
    cancel_token: Optional[CancellationToken] = None
    run_id: Optional[str] = None
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.policy, str):
            self.policy = ExecutionPolicy(self.policy)
        if self.only_ids is not None:
            self.only_ids = frozenset(self.only_ids)
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.run_id is None:
            self.run_id = str(uuid4())

    @property
    def strict(self) -> bool:
        return self.policy == ExecutionPolicy.STRICT

    @property
    def cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.cancelled


@dataclass
class RunResult:
    """Final tree plus report. Always returned, whatever the outcome."""

    tree: RootNode
    report: RunReport

    @property
    def ok(self) -> bool:
        return self.report.status == RunStatus.COMPLETED and not self.report.errors

    @property
    def failure(self) -> Optional[ExtensionFailure]:
        """The failure that aborted the run, if it was aborted."""
        if self.report.status == RunStatus.ABORTED and self.report.errors:
            return self.report.errors[0]
        return None

    def raise_for_status(self) -> "RunResult":
        """Raise PipelineAbortedError if the run aborted; return self otherwise."""
        if self.report.status == RunStatus.ABORTED:
            raise PipelineAbortedError(self.report)
        return self


@dataclass
class RunContext:
    """
    Mutable state for one run.

    ``owners`` maps a top-level extras key to the extension that last
    wrote it; the merge engine consults it for conflict strategies.
    """

    tree: RootNode
    options: RunOptions
    report: RunReport
    owners: dict[str, str] = field(default_factory=dict)
    failed_ids: set[str] = field(default_factory=set)

    @classmethod
    def start(cls, tree: RootNode, options: RunOptions) -> "RunContext":
        return cls(tree=tree, options=options, report=RunReport(run_id=options.run_id))

    def to_result(self) -> RunResult:
        return RunResult(tree=self.tree, report=self.report)

    def add_applied(self, extension_id: str, written_keys: Iterable[str] = ()) -> None:
        self.report.applied.append(extension_id)
        for key in written_keys:
            self.owners[key] = extension_id

    def add_failure(self, failure: ExtensionFailure) -> None:
        self.failed_ids.add(failure.extension_id)
        self.report.errors.append(failure)

    def add_skip(self, extension_id: str, reason: str) -> None:
        self.failed_ids.add(extension_id)
        self.report.skipped.append(SkippedExtension(id=extension_id, reason=reason))

    def add_conflicts(self, entries: Iterable[ConflictEntry]) -> None:
        self.report.conflicts.extend(entries)

    def abort_with(self, failure: ExtensionFailure) -> None:
        """Strict abort and resolution failures: one error, nothing else pending."""
        self.add_failure(failure)
        self.report.status = RunStatus.ABORTED

    def resolution_failure(self, extension_id: str, message: str, error_type: str) -> None:
        self.abort_with(ExtensionFailure(
            extension_id=extension_id,
            message=message,
            phase=ExecutionPhase.RESOLVE,
            error_type=error_type,
            recoverable=False,
        ))
