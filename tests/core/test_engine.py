"""
Tests for the pipeline orchestrator.
"""

import asyncio

import pytest

from glossa.core.context import CancellationToken, ExecutionPolicy, RunOptions
from glossa.core.contracts import Extension
from glossa.core.engine import Engine, process
from glossa.core.errors import PipelineAbortedError
from glossa.core.merge import ConflictStrategy, MergeOptions
from glossa.core.registry import ExtensionRegistry
from glossa.core.report import ExecutionPhase, RunStatus
from glossa.core.traversal import get_all_words
from glossa.extensions import create_respelling_extension
from glossa.tree import document_from_words

LENIENT = RunOptions(policy=ExecutionPolicy.LENIENT)


def word_extras(tree):
    return [w.extras for w in get_all_words(tree)]


class TestPronunciationScenarios:
    """Transcription feeding respelling."""

    def test_declared_order(self, engine, hello_tree, transcription):
        respelling = create_respelling_extension(depends_on=None)
        result = engine.run(hello_tree, [transcription, respelling])

        assert result.ok
        extras = word_extras(result.tree)[0]
        assert extras["transcription"]["ipa"] == "/həˈloʊ/"
        assert extras["respelling"]["text"] == "huh-LOH"
        assert result.report.applied == ["transcription", "respelling"]

    def test_dependency_reorders_input(self, engine, hello_tree, transcription, respelling):
        """Respelling listed first but depending on transcription: same output."""
        result = engine.run(hello_tree, [respelling, transcription])

        assert result.report.resolved_order == ["transcription", "respelling"]
        extras = word_extras(result.tree)[0]
        assert extras["transcription"]["ipa"] == "/həˈloʊ/"
        assert extras["respelling"] == {"text": "huh-LOH", "from_ipa": "/həˈloʊ/"}

    def test_respelling_alone_strict_aborts(self, engine, hello_tree):
        respelling = create_respelling_extension(depends_on=None)
        result = engine.run(hello_tree, [respelling])

        assert result.report.status == RunStatus.ABORTED
        assert len(result.report.errors) == 1
        failure = result.report.errors[0]
        assert failure.extension_id == "respelling"
        assert failure.error_type == "MissingDependencyError"
        assert failure.node_path == "/0/0/0"
        assert result.report.applied == []
        assert result.failure == failure

    def test_respelling_alone_lenient_skips(self, engine, hello_tree):
        before = hello_tree.model_dump()
        respelling = create_respelling_extension(depends_on=None)
        result = engine.run(hello_tree, [respelling], LENIENT)

        assert result.report.status == RunStatus.COMPLETED
        assert result.report.applied == []
        assert result.report.skipped_ids == ["respelling"]
        assert result.tree.model_dump() == before


class TestStrictPolicy:
    """Abort on first failure."""

    def test_short_circuit(self, engine, two_word_tree, make_extension):
        calls = []
        exts = [
            make_extension("a", calls=calls),
            make_extension("b", calls=calls, fail=True),
            make_extension("c", calls=calls),
        ]
        result = engine.run(two_word_tree, exts)

        assert result.report.status == RunStatus.ABORTED
        assert result.report.applied == ["a"]
        assert [e.extension_id for e in result.report.errors] == ["b"]
        assert "c" not in calls
        assert all("c" not in extras for extras in word_extras(result.tree))
        assert all(extras["a"] == "a" for extras in word_extras(result.tree))

    def test_no_rollback_of_applied_extensions(self, engine, hello_tree, make_extension):
        result = engine.run(hello_tree, [make_extension("a"), make_extension("b", fail=True)])
        assert word_extras(result.tree)[0] == {"a": "a"}

    def test_raise_for_status(self, engine, hello_tree, make_extension):
        result = engine.run(hello_tree, [make_extension("boom", fail=True)])
        with pytest.raises(PipelineAbortedError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.failure.extension_id == "boom"
        assert exc_info.value.report is result.report

    def test_failed_enhancer_writes_nothing(self, engine, make_extension):
        """One failing word means no word gets the extension's fields."""
        tree = document_from_words(["good", "bad", "good"])

        def enhance(word):
            if word.children[0].value == "bad":
                raise ValueError("bad word")
            return {"mark": True}

        ext = Extension(id="marker", provides={"extras": ["mark"]}, enhance=enhance)
        result = engine.run(tree, [ext])

        failure = result.report.errors[0]
        assert failure.failed_nodes == 1
        assert failure.node_path == "/0/0/2"
        assert failure.phase == ExecutionPhase.ENHANCE
        assert all("mark" not in extras for extras in word_extras(result.tree))


class TestLenientPolicy:
    """Skip and continue."""

    def test_cascade_to_dependents(self, engine, two_word_tree, make_extension):
        calls = []
        exts = [
            make_extension("a", calls=calls, fail=True),
            make_extension("b", dependencies=("a",), calls=calls),
            make_extension("c", calls=calls),
        ]
        result = engine.run(two_word_tree, exts, LENIENT)
        report = result.report

        assert report.status == RunStatus.COMPLETED
        assert report.applied == ["c"]
        assert report.skipped_ids == ["a", "b"]
        assert "b" not in calls
        assert "'a'" in report.skipped[1].reason
        assert [e.extension_id for e in report.errors] == ["a", "b"]
        assert report.errors_for("b")[0].phase == ExecutionPhase.RESOLVE
        assert all("b" not in extras for extras in word_extras(result.tree))

    def test_skipped_transform_leaves_tree_untouched(self, engine, hello_tree, make_extension):
        def transform(tree):
            tree.extras["restructured_by"] = "bad"

        def visit(word):
            raise ValueError("boom")

        exts = [
            Extension(id="bad", transform=transform, visit={"word": visit}),
            make_extension("c"),
        ]
        result = engine.run(hello_tree, exts, LENIENT)

        assert result.report.skipped_ids == ["bad"]
        assert result.report.applied == ["c"]
        assert result.tree.extras == {}

    def test_transitive_cascade(self, engine, hello_tree, make_extension):
        exts = [
            make_extension("a", fail=True),
            make_extension("b", dependencies=("a",)),
            make_extension("c", dependencies=("b",)),
        ]
        result = engine.run(hello_tree, exts, LENIENT)
        assert result.report.skipped_ids == ["a", "b", "c"]
        assert result.report.applied == []
        assert not result.ok


class TestResolutionFailures:
    """Nothing runs when the order can't be resolved."""

    def test_cycle_aborts_before_execution(self, engine, hello_tree, make_extension):
        calls = []
        exts = [
            make_extension("a", dependencies=("b",), calls=calls),
            make_extension("b", dependencies=("a",), calls=calls),
        ]
        result = engine.run(hello_tree, exts, LENIENT)

        assert result.report.status == RunStatus.ABORTED
        assert calls == []
        assert result.report.applied == []
        failure = result.report.errors[0]
        assert failure.error_type == "CircularDependencyError"
        assert failure.phase == ExecutionPhase.RESOLVE
        assert failure.recoverable is False
        assert word_extras(result.tree) == [{}]

    def test_missing_dependency(self, engine, hello_tree, make_extension):
        result = engine.run(hello_tree, [make_extension("a", dependencies=("nope",))])
        assert result.report.errors[0].error_type == "MissingExtensionError"

    def test_unknown_only_id(self, engine, hello_tree, make_extension):
        options = RunOptions(only_ids={"a", "ghost"})
        result = engine.run(hello_tree, [make_extension("a")], options)
        assert result.report.errors[0].error_type == "UnknownExtensionError"
        assert result.report.errors[0].extension_id == "ghost"

    def test_only_ids_restricts_set(self, engine, hello_tree, make_extension):
        options = RunOptions(only_ids={"b"})
        result = engine.run(hello_tree, [make_extension("a"), make_extension("b")], options)
        assert result.report.applied == ["b"]


class TestHooks:
    """Lifecycle callbacks."""

    def test_order(self, engine, hello_tree, make_extension):
        events = []
        engine.before("a", lambda tree, ext_id: events.append(("before", ext_id)))
        engine.after("a", lambda tree, ext_id: events.append(("after", ext_id)))
        engine.before("b", lambda tree, ext_id: events.append(("before", ext_id)))
        engine.on_progress(lambda stats: events.append(("progress", stats.completed, stats.total)))

        engine.run(hello_tree, [make_extension("a"), make_extension("b")])

        assert events == [
            ("before", "a"),
            ("after", "a"),
            ("progress", 1, 2),
            ("before", "b"),
            ("progress", 2, 2),
        ]

    def test_async_hook_is_awaited(self, engine, hello_tree, make_extension):
        seen = []

        async def after(tree, ext_id):
            await asyncio.sleep(0)
            seen.append(ext_id)

        engine.after("a", after)
        engine.run(hello_tree, [make_extension("a")])
        assert seen == ["a"]

    def test_failing_hook_does_not_affect_run(self, engine, hello_tree, make_extension):
        def broken(tree, ext_id):
            raise RuntimeError("hook bug")

        engine.before("a", broken)
        result = engine.run(hello_tree, [make_extension("a")])
        assert result.ok
        assert result.report.applied == ["a"]

    def test_error_and_skip_hooks(self, engine, hello_tree, make_extension):
        errors, skips = [], []
        engine.on_error(lambda failure: errors.append(failure.extension_id))
        engine.on_skip(lambda ext_id, reason: skips.append(ext_id))

        exts = [make_extension("a", fail=True), make_extension("b", dependencies=("a",))]
        engine.run(hello_tree, exts, LENIENT)

        assert errors == ["a"]
        assert skips == ["a", "b"]

    def test_after_hook_sees_annotations(self, engine, hello_tree, make_extension):
        seen = []
        engine.after("a", lambda tree, ext_id: seen.append(word_extras(tree)[0].get("a")))
        engine.run(hello_tree, [make_extension("a")])
        assert seen == ["a"]


class TestCancellation:
    """Cancellation token checked between extensions."""

    def test_cancel_between_extensions(self, engine, hello_tree, make_extension):
        token = CancellationToken()
        calls = []
        engine.after("a", lambda tree, ext_id: token.cancel("user stop"))

        result = engine.run(
            hello_tree,
            [make_extension("a", calls=calls), make_extension("b", calls=calls)],
            RunOptions(cancel_token=token),
        )

        assert result.report.status == RunStatus.CANCELLED
        assert result.report.applied == ["a"]
        assert result.report.skipped == []
        assert calls == ["a"]

    def test_cancelled_before_start(self, engine, hello_tree, make_extension):
        token = CancellationToken()
        token.cancel()
        result = engine.run(hello_tree, [make_extension("a")], RunOptions(cancel_token=token))
        assert result.report.status == RunStatus.CANCELLED
        assert result.report.applied == []
        assert word_extras(result.tree) == [{}]


class TestConflictsAndMerging:
    """Overlapping extensions."""

    def test_overlap_reported_not_fatal(self, engine, hello_tree, make_extension):
        exts = [make_extension("a", key="gloss"), make_extension("b", key="gloss")]
        result = engine.run(hello_tree, exts)

        assert result.ok
        assert len(result.report.conflict_warnings) == 1
        assert result.report.conflicts[0].fields == ["extras.gloss"]
        # Later extension wins on the shared leaf
        assert word_extras(result.tree)[0]["gloss"] == "b"

    def test_error_strategy_fails_second_writer(self, engine, hello_tree, make_extension):
        options = RunOptions(merge=MergeOptions(conflict_strategy=ConflictStrategy.ERROR))
        exts = [make_extension("a", key="gloss"), make_extension("b", key="gloss")]
        result = engine.run(hello_tree, exts, options)

        assert result.report.applied == ["a"]
        assert result.report.errors[0].error_type == "FieldConflictError"
        assert word_extras(result.tree)[0]["gloss"] == "a"

    def test_disjoint_extensions_commute(self, engine, make_extension):
        a = make_extension("a", value={"x": 1})
        b = make_extension("b", value=[1, 2])

        forward = engine.run(document_from_words(["w"]), [a, b])
        backward = engine.run(document_from_words(["w"]), [b, a])

        assert word_extras(forward.tree) == word_extras(backward.tree)


class TestBehaviors:
    """Transforms and visitors through the engine."""

    def test_transform_replaces_tree(self, engine, hello_tree):
        replacement = document_from_words(["other"])
        ext = Extension(id="swap", transform=lambda tree: replacement)
        result = engine.run(hello_tree, [ext])
        assert result.tree is replacement

    def test_async_transform_in_place(self, engine, hello_tree):
        async def transform(tree):
            tree.extras["seen"] = True

        result = engine.run(hello_tree, [Extension(id="t", transform=transform)])
        assert result.tree is hello_tree
        assert hello_tree.extras == {"seen": True}

    def test_visitor_by_short_tag(self, engine, two_word_tree):
        def visit(sentence):
            sentence.extras["visited"] = True

        result = engine.run(two_word_tree, [Extension(id="v", visit={"sentence": visit})])
        sentence = result.tree.children[0].children[0]
        assert sentence.extras == {"visited": True}

    def test_visitor_wrong_return_type_fails(self, engine, hello_tree):
        ext = Extension(id="v", visit={"WordNode": lambda word: "not a node"})
        result = engine.run(hello_tree, [ext])
        assert result.report.errors[0].error_type == "TypeError"
        assert result.report.errors[0].phase == ExecutionPhase.VISIT

    def test_timing_and_counts(self, engine, two_word_tree, make_extension):
        result = engine.run(two_word_tree, [make_extension("a")])
        assert set(result.report.timing_ms) == {"a"}
        assert result.report.nodes_processed == 2
        assert result.report.total_duration_ms >= 0


class TestConcurrency:
    """Bounded node dispatch and independent runs."""

    def test_max_concurrency_bound(self, engine):
        tree = document_from_words([f"w{i}" for i in range(10)])
        in_flight = 0
        peak = 0

        async def enhance(word):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return {"done": True}

        ext = Extension(id="slow", provides={"extras": ["done"]}, enhance=enhance)
        result = engine.run(tree, [ext], RunOptions(max_concurrency=2))

        assert result.ok
        assert peak <= 2
        assert all(extras["done"] for extras in word_extras(result.tree))

    def test_parallel_runs(self, engine, make_extension):
        trees = [document_from_words(["a"]), document_from_words(["b"])]

        async def main():
            return await asyncio.gather(
                *(engine.run_async(tree, [make_extension("x")]) for tree in trees)
            )

        results = asyncio.run(main())
        assert [r.report.applied for r in results] == [["x"], ["x"]]
        assert results[0].report.run_id != results[1].report.run_id

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            RunOptions(max_concurrency=0)


class TestRegistryBoundEngine:
    """Extensions drawn from the engine's registry."""

    def test_runs_registered_extensions(self, hello_tree, make_extension):
        registry = ExtensionRegistry([make_extension("b", dependencies=("a",)), make_extension("a")])
        result = Engine(registry).run(hello_tree)
        assert result.report.applied == ["a", "b"]

    def test_unselected_registered_dependency(self, hello_tree, make_extension):
        """Dependency exists in the registry but isn't selected: not a resolution error."""
        registry = ExtensionRegistry([make_extension("a"), make_extension("b", dependencies=("a",))])
        result = Engine(registry).run(hello_tree, options=RunOptions(only_ids={"b"}))
        assert result.report.applied == ["b"]

    def test_process_uses_default_registry(self):
        tree = document_from_words(["hello", "queue"])
        result = process(tree, ["transcription", "respelling"])
        words = get_all_words(result.tree)
        assert words[0].extras["respelling"]["text"] == "huh-LOH"
        assert words[1].extras["transcription"]["ipa"] == "/kjuː/"
