"""
Run Report — Pydantic models describing what one run did.

The report is the only thing a lenient caller needs to inspect:
applied, skipped, failed, and every conflict finding.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Terminal state of a run."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


class ExecutionPhase(str, Enum):
    """Where a failure happened."""

    RESOLVE = "resolve"
    REQUIRE = "require"
    TRANSFORM = "transform"
    VISIT = "visit"
    ENHANCE = "enhance"


class ConflictSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ConflictEntry(BaseModel):
    """A conflict finding between two extensions. Advisory only."""

    first: str = Field(..., description="Extension that declares or shares first")
    second: str = Field(..., description="The other extension")
    reason: str
    severity: ConflictSeverity
    fields: list[str] = Field(default_factory=list, description="Shared provided fields, if any")


class SkippedExtension(BaseModel):
    id: str
    reason: str


class ExtensionFailure(BaseModel):
    """
    One failed extension.

    ``node_path`` is the first failing node (``"/0/1/0"``), or None for
    tree-level failures (resolution, transform).
    """

    extension_id: str
    message: str
    phase: ExecutionPhase
    error_type: str = Field(..., description="Exception class name")
    node_path: Optional[str] = None
    failed_nodes: int = Field(default=0, description="Number of nodes that raised")
    recoverable: bool = Field(default=True, description="False for resolution failures")


class RunReport(BaseModel):
    """Structured record of one pipeline invocation."""

    run_id: str
    status: RunStatus = RunStatus.COMPLETED
    resolved_order: list[str] = Field(default_factory=list)
    applied: list[str] = Field(default_factory=list)
    skipped: list[SkippedExtension] = Field(default_factory=list)
    errors: list[ExtensionFailure] = Field(default_factory=list)
    conflicts: list[ConflictEntry] = Field(default_factory=list)
    timing_ms: dict[str, float] = Field(default_factory=dict, description="Per-extension wall time")
    total_duration_ms: float = 0.0
    nodes_processed: int = 0

    @property
    def skipped_ids(self) -> list[str]:
        return [entry.id for entry in self.skipped]

    @property
    def conflict_warnings(self) -> list[ConflictEntry]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.WARNING]

    def errors_for(self, extension_id: str) -> list[ExtensionFailure]:
        return [e for e in self.errors if e.extension_id == extension_id]
