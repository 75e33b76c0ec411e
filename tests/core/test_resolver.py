"""
Tests for dependency resolution.
"""

import random

import pytest

from glossa.core.contracts import Extension
from glossa.core.errors import (
    CircularDependencyError,
    DuplicateExtensionError,
    MissingExtensionError,
)
from glossa.core.resolver import derived_dependencies, resolve_ids, resolve_order


def ext(ext_id, *deps, **kwargs):
    return Extension(id=ext_id, dependencies=deps, **kwargs)


class TestResolveOrder:
    """Ordering by declared dependencies."""

    def test_dependency_moves_ahead(self):
        """A dependency supplied after its dependent still runs first."""
        order = resolve_ids([ext("b", "a"), ext("a")])
        assert order == ["a", "b"]

    def test_independent_extensions_keep_input_order(self):
        order = resolve_ids([ext("c"), ext("a"), ext("b")])
        assert order == ["c", "a", "b"]

    def test_diamond(self):
        order = resolve_ids([ext("d", "b", "c"), ext("c", "a"), ext("b", "a"), ext("a")])
        assert order.index("a") < order.index("b") < order.index("d")
        assert order.index("a") < order.index("c") < order.index("d")
        assert len(order) == 4

    def test_every_extension_after_its_dependencies(self):
        """Random acyclic graphs: each id lands after all its in-set dependencies."""
        rng = random.Random(1234)
        for _ in range(50):
            size = rng.randint(1, 12)
            ids = [f"e{i}" for i in range(size)]
            exts = []
            for i, ext_id in enumerate(ids):
                deps = rng.sample(ids[:i], rng.randint(0, i)) if i else []
                exts.append(ext(ext_id, *deps))
            rng.shuffle(exts)

            order = resolve_ids(exts)

            assert sorted(order) == sorted(ids)
            position = {ext_id: n for n, ext_id in enumerate(order)}
            for e in exts:
                for dep in e.dependencies:
                    assert position[dep] < position[e.id]

    def test_returns_descriptors(self):
        a = ext("a")
        assert resolve_order([a]) == [a]

    def test_empty_input(self):
        assert resolve_order([]) == []


class TestResolutionFailures:
    """Cycles, unknown dependencies, duplicate ids."""

    def test_two_cycle(self):
        with pytest.raises(CircularDependencyError) as exc_info:
            resolve_order([ext("a", "b"), ext("b", "a")])
        assert exc_info.value.extension_id in {"a", "b"}
        assert set(exc_info.value.cycle) == {"a", "b"}

    def test_three_cycle_names_member(self):
        with pytest.raises(CircularDependencyError) as exc_info:
            resolve_order([ext("x"), ext("a", "c"), ext("b", "a"), ext("c", "b")])
        assert exc_info.value.extension_id in {"a", "b", "c"}
        assert "Circular dependency" in str(exc_info.value)

    def test_self_dependency(self):
        with pytest.raises(CircularDependencyError):
            resolve_order([ext("a", "a")])

    def test_missing_dependency(self):
        with pytest.raises(MissingExtensionError) as exc_info:
            resolve_order([ext("b", "ghost")])
        assert exc_info.value.extension_id == "b"
        assert exc_info.value.dependency_id == "ghost"

    def test_known_but_unselected_dependency_is_ignored(self):
        """Registered elsewhere, not selected: no ordering constraint, no error."""
        assert resolve_ids([ext("b", "a")], known_ids=["a"]) == ["b"]

    def test_duplicate_ids(self):
        with pytest.raises(DuplicateExtensionError):
            resolve_order([ext("a"), ext("a")])


class TestDerivedDependencies:
    """Ordering by requires/provides when switched on."""

    def make_pair(self):
        producer = Extension(id="producer", provides={"extras": ["ipa"]})
        consumer = Extension(id="consumer", requires={"extras": ["ipa"]})
        return producer, consumer

    def test_off_by_default(self):
        producer, consumer = self.make_pair()
        assert resolve_ids([consumer, producer]) == ["consumer", "producer"]

    def test_derived_order(self):
        producer, consumer = self.make_pair()
        order = resolve_ids([consumer, producer], derive_dependencies=True)
        assert order == ["producer", "consumer"]

    def test_derived_ids(self):
        producer, consumer = self.make_pair()
        assert derived_dependencies(consumer, [consumer, producer]) == ["producer"]
        assert derived_dependencies(producer, [consumer, producer]) == []
