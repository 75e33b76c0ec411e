"""
Tests for running a single extension.
"""

import asyncio

import pytest

from glossa.core.context import CancellationToken, RunOptions
from glossa.core.contracts import Extension
from glossa.core.errors import RunCancelledError
from glossa.core.executor import ExtensionExecutor
from glossa.core.report import ExecutionPhase
from glossa.core.traversal import get_all_words
from glossa.tree import create_document, create_paragraph_node, document_from_words


def execute(ext, tree, options=None, **kwargs):
    return asyncio.run(ExtensionExecutor(ext, options or RunOptions(), **kwargs).run(tree))


class TestRequirements:
    """Checks that run before any behavior."""

    def test_missing_node_type(self):
        tree = create_document([create_paragraph_node([])])
        ext = Extension(
            id="needs-sentences",
            requires={"nodes": ["sentence"]},
            visit={"sentence": lambda node: None},
        )
        outcome = execute(ext, tree)

        assert not outcome.succeeded
        assert outcome.failure.error_type == "MissingNodeTypeError"
        assert outcome.failure.phase == ExecutionPhase.REQUIRE

    def test_missing_extras_names_provider(self, hello_tree):
        ext = Extension(id="reader", requires={"extras": ["gloss"]}, enhance=lambda w: None)
        outcome = execute(ext, hello_tree, providers_of={"extras.gloss": "glosser"})

        assert outcome.failure.error_type == "MissingDependencyError"
        assert "'glosser'" in outcome.failure.message
        assert "extras.gloss" in outcome.failure.message

    def test_missing_metadata(self, hello_tree):
        ext = Extension(id="pos", requires={"metadata": ["part_of_speech"]}, enhance=lambda w: None)
        outcome = execute(ext, hello_tree)
        assert outcome.failure.error_type == "MissingDependencyError"

    def test_present_requirement_passes(self):
        tree = document_from_words(["hi"])
        tree.children[0].children[0].children[0].extras["gloss"] = "greeting"
        ext = Extension(
            id="reader",
            requires={"extras": ["gloss"]},
            enhance=lambda w: {"seen": w.extras["gloss"]},
        )
        outcome = execute(ext, tree)
        assert outcome.succeeded
        assert outcome.written_keys == ["seen"]


class TestPhases:
    """Transform, visit and enhance handling."""

    def test_phases_run_in_order(self, hello_tree):
        order = []

        def transform(tree):
            order.append("transform")

        def visit(word):
            order.append("visit")

        def enhance(word):
            order.append("enhance")

        ext = Extension(id="all", transform=transform, visit={"word": visit}, enhance=enhance)
        assert execute(ext, hello_tree).succeeded
        assert order == ["transform", "visit", "enhance"]

    def test_transform_bad_return(self, hello_tree):
        outcome = execute(Extension(id="t", transform=lambda tree: 42), hello_tree)
        assert outcome.failure.phase == ExecutionPhase.TRANSFORM
        assert outcome.failure.error_type == "TypeError"
        assert outcome.failure.node_path is None

    def test_visitor_same_type_replacement(self, hello_tree):
        def visit(word):
            return word.model_copy(update={"lang": "fr"})

        outcome = execute(Extension(id="v", visit={"word": visit}), hello_tree)
        assert outcome.succeeded
        assert hello_tree.children[0].children[0].children[0].lang == "fr"

    def test_enhancer_bad_return(self, hello_tree):
        outcome = execute(Extension(id="e", enhance=lambda w: ["x"]), hello_tree)
        assert outcome.failure.error_type == "TypeError"
        assert outcome.failure.phase == ExecutionPhase.ENHANCE

    def test_failed_visit_rolls_back_transform(self, two_word_tree):
        def transform(tree):
            tree.extras["restructured_by"] = "bad"

        def visit(word):
            word.extras["touched"] = True
            if word.children[0].value == "world":
                raise ValueError("boom")

        ext = Extension(id="bad", transform=transform, visit={"word": visit})
        outcome = execute(ext, two_word_tree)

        assert outcome.failure.phase == ExecutionPhase.VISIT
        assert outcome.tree is two_word_tree
        assert two_word_tree.extras == {}
        assert [w.extras for w in get_all_words(two_word_tree)] == [{}, {}]

    def test_failed_enhance_discards_replacement_tree(self, hello_tree):
        replacement = document_from_words(["other"])

        def enhance(word):
            raise KeyError("nope")

        ext = Extension(id="swap", transform=lambda tree: replacement, enhance=enhance)
        outcome = execute(ext, hello_tree)
        assert outcome.failure.phase == ExecutionPhase.ENHANCE
        assert outcome.tree is hello_tree

    def test_all_node_failures_counted(self, two_word_tree):
        def enhance(word):
            raise KeyError("nope")

        outcome = execute(Extension(id="e", enhance=enhance), two_word_tree)
        assert outcome.failure.failed_nodes == 2
        assert outcome.failure.node_path == "/0/0/0"


class TestCancellation:
    def test_cancelled_token_raises(self, hello_tree):
        token = CancellationToken()
        token.cancel("stop")
        ext = Extension(id="e", enhance=lambda w: {"x": 1})
        with pytest.raises(RunCancelledError):
            execute(ext, hello_tree, RunOptions(cancel_token=token))
