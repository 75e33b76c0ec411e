"""
Engine — Pipeline orchestration.

The engine resolves an execution order, runs extensions one at a time,
applies the failure policy, and assembles the run report.

The engine is NOT where annotation logic lives.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from glossa.core.conflicts import conflicts_with
from glossa.core.context import ExecutionPolicy, RunContext, RunOptions, RunResult
from glossa.core.contracts import Extension
from glossa.core.errors import ResolutionError, RunCancelledError, UnknownExtensionError
from glossa.core.executor import ExtensionExecutor
from glossa.core.logging import LogChannel, RunLogger, get_logger
from glossa.core.registry import ExtensionRegistry, get_registry
from glossa.core.report import ExecutionPhase, ExtensionFailure, RunStatus
from glossa.core.resolver import derived_dependencies, resolve_order
from glossa.tree.schema import RootNode

log = get_logger(LogChannel.PIPELINE)


@dataclass
class ProgressStats:
    """Passed to progress hooks after each extension."""

    total: int
    completed: int
    current: Optional[str]
    elapsed_ms: float


# Hook signatures; any hook may also be a coroutine function
TreeHook = Callable[[RootNode, str], Any]
ErrorHook = Callable[[ExtensionFailure], Any]
SkipHook = Callable[[str, str], Any]
ProgressHook = Callable[[ProgressStats], Any]


class Engine:
    """
    Extension orchestrator.

    Runs extensions in dependency order over one tree, handles
    failures per policy, and reports what happened.
    """

    def __init__(self, registry: Optional[ExtensionRegistry] = None) -> None:
        self._registry = registry
        self._before: dict[str, list[TreeHook]] = {}
        self._after: dict[str, list[TreeHook]] = {}
        self._on_error: list[ErrorHook] = []
        self._on_skip: list[SkipHook] = []
        self._on_progress: list[ProgressHook] = []

    @property
    def registry(self) -> ExtensionRegistry:
        if self._registry is None:
            self._registry = get_registry()
        return self._registry

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def before(self, extension_id: str, hook: TreeHook) -> "Engine":
        """Run ``hook(tree, extension_id)`` before an extension executes."""
        self._before.setdefault(extension_id, []).append(hook)
        return self

    def after(self, extension_id: str, hook: TreeHook) -> "Engine":
        """Run ``hook(tree, extension_id)`` after an extension applies."""
        self._after.setdefault(extension_id, []).append(hook)
        return self

    def on_error(self, hook: ErrorHook) -> "Engine":
        self._on_error.append(hook)
        return self

    def on_skip(self, hook: SkipHook) -> "Engine":
        self._on_skip.append(hook)
        return self

    def on_progress(self, hook: ProgressHook) -> "Engine":
        self._on_progress.append(hook)
        return self

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(
        self,
        tree: RootNode,
        extensions: Optional[Iterable[Extension]] = None,
        options: Optional[RunOptions] = None,
    ) -> RunResult:
        """
        Run extensions over a tree.

        Blocking wrapper around ``run_async``; must not be called from
        inside a running event loop.

        Args:
            tree: Document root. Mutated in place by visitors/enhancers.
            extensions: Extensions to run (default: every registered one)
            options: Policy, id restriction, concurrency, cancellation

        Returns:
            RunResult with the final tree and the report
        """
        return asyncio.run(self.run_async(tree, extensions, options))

    async def run_async(
        self,
        tree: RootNode,
        extensions: Optional[Iterable[Extension]] = None,
        options: Optional[RunOptions] = None,
    ) -> RunResult:
        """Async form of ``run``. Independent calls may run concurrently."""
        options = options or RunOptions()
        ctx = RunContext.start(tree, options)
        rlog = RunLogger(options.run_id)

        candidates = list(extensions) if extensions is not None else self.registry.list_extensions()
        known_ids = set(self.registry.ids()) | {ext.id for ext in candidates}

        # Resolving
        try:
            selected = _select(candidates, options.only_ids)
            ordered = resolve_order(selected, known_ids, options.derive_dependencies)
        except ResolutionError as exc:
            ctx.resolution_failure(exc.extension_id, str(exc), type(exc).__name__)
            ctx.report.total_duration_ms = rlog.run_complete(
                status=ctx.report.status.value,
                error=str(exc),
            )
            return ctx.to_result()

        ctx.report.resolved_order = [ext.id for ext in ordered]
        providers_of = _providers_of(ordered, self.registry.list_extensions())
        started = time.perf_counter()

        log.verbose(
            "run_started",
            policy=options.policy.value,
            order=ctx.report.resolved_order,
        )

        # Running
        for index, ext in enumerate(ordered):
            if options.cancelled:
                ctx.report.status = RunStatus.CANCELLED
                break

            ctx.add_conflicts(conflicts_with(ext, ordered[:index]))

            blocked_by = self._blocking_dependency(ext, ordered, ctx)
            if blocked_by is not None:
                await self._skip_for_dependency(ctx, rlog, ext, blocked_by)
                await self._progress(len(ordered), index + 1, ext.id, started)
                continue

            await self._fire(self._before.get(ext.id, []), ctx.tree, ext.id)
            rlog.extension_start(ext.id)

            executor = ExtensionExecutor(ext, options, ctx.owners, providers_of)
            try:
                outcome = await executor.run(ctx.tree)
            except RunCancelledError as exc:
                log.warning("run_cancelled", extension_id=ext.id, reason=str(exc))
                ctx.report.status = RunStatus.CANCELLED
                break

            ctx.tree = outcome.tree
            ctx.report.nodes_processed += outcome.nodes_processed

            if outcome.succeeded:
                ctx.report.timing_ms[ext.id] = rlog.extension_end(
                    ext.id,
                    nodes=outcome.nodes_processed,
                    fields=outcome.written_keys,
                )
                ctx.add_applied(ext.id, outcome.written_keys)
                await self._fire(self._after.get(ext.id, []), ctx.tree, ext.id)
            else:
                failure = outcome.failure
                ctx.report.timing_ms[ext.id] = rlog.extension_error(
                    ext.id, failure.error_type, failure.message
                )
                await self._fire(self._on_error, failure)

                if options.policy == ExecutionPolicy.STRICT:
                    ctx.abort_with(failure)
                    break

                ctx.add_failure(failure)
                ctx.add_skip(ext.id, failure.message)
                rlog.extension_skipped(ext.id, failure.message)
                await self._fire(self._on_skip, ext.id, failure.message)

            await self._progress(len(ordered), index + 1, ext.id, started)

        ctx.report.total_duration_ms = rlog.run_complete(
            status=ctx.report.status.value,
            applied=len(ctx.report.applied),
            skipped=len(ctx.report.skipped),
            errors=len(ctx.report.errors),
            conflicts=len(ctx.report.conflicts),
        )
        return ctx.to_result()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _blocking_dependency(
        self,
        ext: Extension,
        ordered: Sequence[Extension],
        ctx: RunContext,
    ) -> Optional[str]:
        """First in-set dependency that failed or was skipped earlier."""
        deps = list(ext.dependencies)
        if ctx.options.derive_dependencies:
            deps.extend(derived_dependencies(ext, ordered))
        for dep_id in deps:
            if dep_id in ctx.failed_ids:
                return dep_id
        return None

    async def _skip_for_dependency(
        self,
        ctx: RunContext,
        rlog: RunLogger,
        ext: Extension,
        dependency_id: str,
    ) -> None:
        reason = f"dependency '{dependency_id}' did not apply"
        ctx.add_failure(ExtensionFailure(
            extension_id=ext.id,
            message=reason,
            phase=ExecutionPhase.RESOLVE,
            error_type="DependencySkipped",
        ))
        ctx.add_skip(ext.id, reason)
        rlog.extension_skipped(ext.id, reason)
        await self._fire(self._on_skip, ext.id, reason)

    async def _progress(self, total: int, completed: int, current: str, started: float) -> None:
        if not self._on_progress:
            return
        stats = ProgressStats(
            total=total,
            completed=completed,
            current=current,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        await self._fire(self._on_progress, stats)

    async def _fire(self, hooks: Sequence[Callable[..., Any]], *args: Any) -> None:
        """Call hooks in registration order. A failing hook never affects the run."""
        for hook in hooks:
            try:
                result = hook(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                log.warning(
                    "hook_failed",
                    hook=getattr(hook, "__name__", repr(hook)),
                    error=str(e),
                    error_type=type(e).__name__,
                )


def _select(candidates: Sequence[Extension], only_ids: Optional[frozenset[str]]) -> list[Extension]:
    if only_ids is None:
        return list(candidates)
    available = {ext.id for ext in candidates}
    unknown = sorted(only_ids - available)
    if unknown:
        raise UnknownExtensionError(unknown[0])
    return [ext for ext in candidates if ext.id in only_ids]


def _providers_of(
    ordered: Sequence[Extension],
    registered: Sequence[Extension],
) -> dict[str, str]:
    """Qualified field -> providing extension; in-run extensions take precedence."""
    providers: dict[str, str] = {}
    for ext in list(registered) + list(ordered):
        for qualified in ext.provides.qualified():
            providers[qualified] = ext.id
    return providers


# Global engine instance
_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Get or create the global engine, bound to the default registry."""
    global _engine
    if _engine is None:
        _engine = Engine()
    return _engine


def process(
    tree: RootNode,
    extension_ids: Optional[Iterable[str]] = None,
    policy: ExecutionPolicy = ExecutionPolicy.STRICT,
) -> RunResult:
    """
    Convenience function: run registered extensions over a tree.

    Args:
        tree: Document root
        extension_ids: Registered ids to run (default: all)
        policy: strict or lenient

    Returns:
        RunResult
    """
    options = RunOptions(
        policy=policy,
        only_ids=frozenset(extension_ids) if extension_ids is not None else None,
    )
    return get_engine().run(tree, options=options)
