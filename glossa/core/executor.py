"""
Executor — Run one extension against one tree.

Phases, in order:
1. require: node types the extension needs must exist
2. transform: whole-tree; may return a new tree
3. visit: per-node visitors, matched by tag
4. enhance: per-word partial extras, merged via the merge engine

Node invocations within a phase are dispatched together and settle
before the phase ends. Results are applied in traversal order.
A failed or cancelled extension leaves the tree as it found it.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from glossa.core.context import RunOptions
from glossa.core.contracts import Extension
from glossa.core.errors import (
    MissingDependencyError,
    MissingNodeTypeError,
    RunCancelledError,
)
from glossa.core.logging import LogChannel, get_logger
from glossa.core.merge import deep_merge
from glossa.core.report import ExecutionPhase, ExtensionFailure
from glossa.core.traversal import NodePath, contains_node_type, format_path, iter_nodes
from glossa.tree.enums import NodeType
from glossa.tree.schema import GlossaNode, RootNode, WordNode

log = get_logger(LogChannel.EXECUTE)


@dataclass
class ExecutionOutcome:
    """What one extension did to the tree."""

    tree: RootNode
    failure: Optional[ExtensionFailure] = None
    written_keys: list[str] = field(default_factory=list)
    nodes_processed: int = 0

    @property
    def succeeded(self) -> bool:
        return self.failure is None


class _PhaseFailed(Exception):
    """Node-level failures collected for one phase."""

    def __init__(self, failures: list[tuple[NodePath, BaseException]]):
        super().__init__(str(failures[0][1]))
        self.failures = failures


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _roll_back(tree: RootNode, snapshot: Optional[RootNode]) -> RootNode:
    """Restore ``tree`` in place to the state captured in ``snapshot``."""
    if snapshot is not None:
        for name in type(tree).model_fields:
            setattr(tree, name, getattr(snapshot, name))
    return tree


class ExtensionExecutor:
    """
    Executes a single extension.

    Args:
        extension: The extension to run
        options: Run options (concurrency, merge strategy, cancellation)
        owners: Top-level extras key -> extension that wrote it
        providers_of: Qualified field ("extras.x") -> extension providing it,
            used to name the missing dependency in requirement failures
    """

    def __init__(
        self,
        extension: Extension,
        options: RunOptions,
        owners: Optional[Mapping[str, str]] = None,
        providers_of: Optional[Mapping[str, str]] = None,
    ):
        self.extension = extension
        self.options = options
        self.owners = owners or {}
        self.providers_of = providers_of or {}
        self._phase = ExecutionPhase.REQUIRE
        self._nodes_processed = 0

    async def run(self, tree: RootNode) -> ExecutionOutcome:
        """
        Run every behavior the extension has.

        Never raises for extension errors; they come back as the
        outcome's failure. Cancellation propagates as RunCancelledError.
        """
        ext = self.extension
        written: list[str] = []
        original = tree
        # Transforms and visitors work on the live tree; keep a copy to roll back to
        snapshot = tree.model_copy(deep=True) if ext.transform is not None or ext.visit else None
        try:
            self._phase = ExecutionPhase.REQUIRE
            self._check_cancelled()
            self._check_required_nodes(tree)

            if ext.transform is not None:
                self._phase = ExecutionPhase.TRANSFORM
                self._check_cancelled()
                tree = await self._transform(tree)

            if ext.visit:
                self._phase = ExecutionPhase.VISIT
                self._check_cancelled()
                await self._visit(tree)

            if ext.enhance is not None:
                self._phase = ExecutionPhase.ENHANCE
                self._check_cancelled()
                written = await self._enhance(tree)

        except RunCancelledError:
            _roll_back(original, snapshot)
            raise
        except _PhaseFailed as failed:
            return ExecutionOutcome(
                tree=_roll_back(original, snapshot),
                failure=self._node_failure(failed.failures),
                nodes_processed=self._nodes_processed,
            )
        except Exception as exc:
            return ExecutionOutcome(
                tree=_roll_back(original, snapshot),
                failure=ExtensionFailure(
                    extension_id=ext.id,
                    message=str(exc) or type(exc).__name__,
                    phase=self._phase,
                    error_type=type(exc).__name__,
                ),
                nodes_processed=self._nodes_processed,
            )

        return ExecutionOutcome(tree=tree, written_keys=written, nodes_processed=self._nodes_processed)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _check_required_nodes(self, tree: RootNode) -> None:
        for tag in sorted(self.extension.requires.nodes):
            if not contains_node_type(tree, tag):
                provider = self.providers_of.get(f"nodes.{tag}")
                suggestion = f"Run '{provider}' first." if provider else ""
                raise MissingNodeTypeError(self.extension.id, tag, suggestion)

    async def _transform(self, tree: RootNode) -> RootNode:
        result = await _resolve(self.extension.transform(tree))
        if result is None:
            # Modified in place
            return tree
        if not isinstance(result, RootNode):
            raise TypeError(
                f"Transform of '{self.extension.id}' must return a RootNode or None, "
                f"got {type(result).__name__}"
            )
        log.verbose("tree_transformed", extension_id=self.extension.id, replaced=result is not tree)
        return result

    async def _visit(self, tree: RootNode) -> None:
        targets = [
            (node, path)
            for node, path in iter_nodes(tree)
            if node.node_type in self.extension.visit
        ]

        def call(node: GlossaNode) -> Any:
            return self.extension.visit[node.node_type](node)

        results = await self._dispatch(targets, call)

        failures: list[tuple[NodePath, BaseException]] = []
        for (node, path), result in zip(targets, results):
            if isinstance(result, BaseException):
                failures.append((path, result))
                continue
            try:
                _apply_visitor_result(node, result)
            except TypeError as exc:
                failures.append((path, exc))

        if failures:
            raise _PhaseFailed(failures)
        log.verbose("nodes_visited", extension_id=self.extension.id, count=len(targets))

    async def _enhance(self, tree: RootNode) -> list[str]:
        words = list(iter_nodes(tree, NodeType.WORD))

        def call(word: WordNode) -> Any:
            self._check_requirements(word)
            return self.extension.enhance(word)

        results = await self._dispatch(words, call)

        failures: list[tuple[NodePath, BaseException]] = []
        for (_, path), result in zip(words, results):
            if isinstance(result, BaseException):
                failures.append((path, result))
            elif result is not None and not isinstance(result, Mapping):
                failures.append((path, TypeError(
                    f"Enhancer of '{self.extension.id}' must return a mapping or None, "
                    f"got {type(result).__name__}"
                )))
        if failures:
            # Nothing is folded for a failed extension
            raise _PhaseFailed(failures)

        # Stage every merge first so a merge conflict leaves no partial writes
        staged: list[tuple[WordNode, dict]] = []
        written: list[str] = []
        for (word, path), partial in zip(words, results):
            if not partial:
                continue
            try:
                merged = deep_merge(
                    word.extras,
                    partial,
                    self.options.merge,
                    self.owners,
                    self.extension.id,
                )
            except Exception as exc:
                raise _PhaseFailed([(path, exc)]) from exc
            staged.append((word, merged))
            for key, value in partial.items():
                if value is not None and key not in written:
                    written.append(key)

        for word, merged in staged:
            word.extras = merged

        log.verbose(
            "words_enhanced",
            extension_id=self.extension.id,
            words=len(words),
            enhanced=len(staged),
        )
        return written

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        targets: Sequence[tuple[GlossaNode, NodePath]],
        fn: Callable[[Any], Any],
    ) -> list[Any]:
        """Invoke ``fn`` per node concurrently; results keep target order."""
        limit = self.options.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def invoke(node: GlossaNode) -> Any:
            self._check_cancelled()
            if semaphore is None:
                return await _resolve(fn(node))
            async with semaphore:
                return await _resolve(fn(node))

        results = await asyncio.gather(
            *(invoke(node) for node, _ in targets),
            return_exceptions=True,
        )
        self._nodes_processed += len(targets)

        for result in results:
            if isinstance(result, (RunCancelledError, asyncio.CancelledError)):
                raise result
        return list(results)

    def _check_requirements(self, word: WordNode) -> None:
        ext = self.extension
        for name in sorted(ext.requires.extras):
            if word.extras.get(name) is None:
                self._missing(f"extras.{name}")
        for name in sorted(ext.requires.metadata):
            if word.metadata is None or not word.metadata.has_field(name):
                self._missing(f"metadata.{name}")

    def _missing(self, qualified: str) -> None:
        ext_id = self.extension.id
        provider = self.providers_of.get(qualified, "unknown")
        suggestion = (
            f"Ensure '{provider}' runs before '{ext_id}'."
            if provider != "unknown"
            else f"No supplied extension provides '{qualified}'."
        )
        raise MissingDependencyError(ext_id, provider, qualified, suggestion)

    def _check_cancelled(self) -> None:
        if self.options.cancelled:
            raise RunCancelledError(self.options.cancel_token.reason or "cancelled")

    def _node_failure(self, failures: list[tuple[NodePath, BaseException]]) -> ExtensionFailure:
        path, first = failures[0]
        return ExtensionFailure(
            extension_id=self.extension.id,
            message=str(first) or type(first).__name__,
            phase=self._phase,
            error_type=type(first).__name__,
            node_path=format_path(path),
            failed_nodes=len(failures),
        )


def _apply_visitor_result(node: GlossaNode, result: Any) -> None:
    """
    Copy a returned node's fields onto the visited node.

    Only same-type replacements are allowed; restructuring belongs to
    transforms.
    """
    if result is None or result is node:
        return
    if type(result) is not type(node):
        raise TypeError(
            f"Visitor for {node.node_type.value} returned {type(result).__name__}; "
            f"visitors may only return a node of the same type"
        )
    for name in type(result).model_fields:
        setattr(node, name, getattr(result, name))
