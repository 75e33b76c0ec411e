"""
Conflict Detector — Explicit conflicts and overlapping provided fields.

Findings are advisory. They are logged and land in the run report;
they never stop a run.
"""

from dataclasses import dataclass, field
from typing import Sequence

from glossa.core.contracts import Extension
from glossa.core.logging import LogChannel, get_logger
from glossa.core.report import ConflictEntry, ConflictSeverity

log = get_logger(LogChannel.RESOLVE)


@dataclass
class ConflictReport:
    """All findings for a set of extensions."""

    conflicts: list[ConflictEntry] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def errors(self) -> list[ConflictEntry]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.ERROR]

    @property
    def warnings(self) -> list[ConflictEntry]:
        return [c for c in self.conflicts if c.severity == ConflictSeverity.WARNING]


def check_pair(first: Extension, second: Extension) -> list[ConflictEntry]:
    """
    Findings between two extensions.

    - Either side listing the other in ``conflicts``: error
    - Intersecting ``provides``: warning (the later one wins on shared leaves)
    """
    findings: list[ConflictEntry] = []

    if first.declares_conflict_with(second.id):
        findings.append(ConflictEntry(
            first=first.id,
            second=second.id,
            reason=f"{first.id} declares conflict with {second.id}",
            severity=ConflictSeverity.ERROR,
        ))
    if second.declares_conflict_with(first.id):
        findings.append(ConflictEntry(
            first=second.id,
            second=first.id,
            reason=f"{second.id} declares conflict with {first.id}",
            severity=ConflictSeverity.ERROR,
        ))

    shared = first.provides.overlap(second.provides)
    if shared:
        findings.append(ConflictEntry(
            first=first.id,
            second=second.id,
            reason=f"Both extensions provide the same fields: {', '.join(shared)}",
            severity=ConflictSeverity.WARNING,
            fields=shared,
        ))

    return findings


def check_conflicts(extensions: Sequence[Extension]) -> ConflictReport:
    """Check every unordered pair once, in input order."""
    report = ConflictReport()
    for i, first in enumerate(extensions):
        for second in extensions[i + 1:]:
            report.conflicts.extend(check_pair(first, second))
    return report


def conflicts_with(extension: Extension, previous: Sequence[Extension]) -> list[ConflictEntry]:
    """
    Findings between ``extension`` and those scheduled before it.

    Checking each step against its predecessors reports every pair
    exactly once over a run.
    """
    findings: list[ConflictEntry] = []
    for earlier in previous:
        for entry in check_pair(earlier, extension):
            log.warning(
                "extension_conflict",
                first=entry.first,
                second=entry.second,
                severity=entry.severity.value,
                reason=entry.reason,
            )
            findings.append(entry)
    return findings
