"""
Resolver — Execution order from declared dependencies.

Depth-first visit with "visiting" (on the stack) and "visited" marks.
An extension is appended after every dependency present in the input
set; unrelated extensions keep their input order.
"""

from typing import Iterable, Optional, Sequence

from glossa.core.contracts import Extension
from glossa.core.errors import (
    CircularDependencyError,
    DuplicateExtensionError,
    MissingExtensionError,
)
from glossa.core.logging import LogChannel, get_logger

log = get_logger(LogChannel.RESOLVE)


def derived_dependencies(extension: Extension, candidates: Sequence[Extension]) -> list[str]:
    """
    Ids of in-set extensions whose ``provides`` meets ``extension.requires``.

    Used only when dependency derivation is switched on.
    """
    if extension.requires.is_empty():
        return []
    return [
        other.id
        for other in candidates
        if other is not extension and extension.requires.overlap(other.provides)
    ]


def resolve_order(
    extensions: Sequence[Extension],
    known_ids: Optional[Iterable[str]] = None,
    derive_dependencies: bool = False,
) -> list[Extension]:
    """
    Order extensions so each follows all of its in-set dependencies.

    Args:
        extensions: Extensions to order, in caller order
        known_ids: Ids that exist outside the input set (e.g. registered
            but not selected). Dependencies on these are ignored.
        derive_dependencies: Also order by requires/provides overlap

    Returns:
        The extensions in execution order

    Raises:
        DuplicateExtensionError: Same id supplied twice
        CircularDependencyError: A dependency cycle exists
        MissingExtensionError: A dependency id matches nothing anywhere
    """
    by_id: dict[str, Extension] = {}
    for ext in extensions:
        if ext.id in by_id:
            raise DuplicateExtensionError(ext.id)
        by_id[ext.id] = ext

    known = set(by_id) | set(known_ids or ())

    resolved: list[Extension] = []
    visited: set[str] = set()
    visiting: list[str] = []

    def dependencies_of(ext: Extension) -> list[str]:
        deps = list(ext.dependencies)
        if derive_dependencies:
            for dep_id in derived_dependencies(ext, extensions):
                if dep_id not in deps:
                    deps.append(dep_id)
        return deps

    def visit(ext: Extension) -> None:
        if ext.id in visiting:
            cycle = visiting[visiting.index(ext.id):] + [ext.id]
            raise CircularDependencyError(ext.id, cycle)
        if ext.id in visited:
            return

        visiting.append(ext.id)
        for dep_id in dependencies_of(ext):
            if dep_id not in known:
                raise MissingExtensionError(ext.id, dep_id)
            if dep_id not in by_id:
                # Known but not selected for this run
                log.debug("dependency_outside_set", extension_id=ext.id, dependency_id=dep_id)
                continue
            visit(by_id[dep_id])
        visiting.pop()

        visited.add(ext.id)
        resolved.append(ext)

    for ext in extensions:
        visit(ext)

    log.verbose("order_resolved", order=[ext.id for ext in resolved])
    return resolved


def resolve_ids(
    extensions: Sequence[Extension],
    known_ids: Optional[Iterable[str]] = None,
    derive_dependencies: bool = False,
) -> list[str]:
    """Same as ``resolve_order`` but returns ids."""
    return [ext.id for ext in resolve_order(extensions, known_ids, derive_dependencies)]
