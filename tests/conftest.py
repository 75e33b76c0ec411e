"""
Shared fixtures: small trees, test extensions, an engine with an empty registry.
"""

import pytest

from glossa.core.contracts import Extension
from glossa.core.engine import Engine
from glossa.core.registry import ExtensionRegistry
from glossa.extensions import create_respelling_extension, create_transcription_extension
from glossa.providers import DictionaryProvider
from glossa.tree import document_from_words


@pytest.fixture
def hello_tree():
    """One paragraph, one sentence, one word: "hello"."""
    return document_from_words(["hello"])


@pytest.fixture
def two_word_tree():
    return document_from_words(["hello", "world"])


@pytest.fixture
def ipa_provider():
    return DictionaryProvider(
        {"hello": "/həˈloʊ/", "world": "/wɜːrld/"},
        name="test-ipa",
    )


@pytest.fixture
def transcription(ipa_provider):
    return create_transcription_extension(provider=ipa_provider)


@pytest.fixture
def respelling():
    return create_respelling_extension()


@pytest.fixture
def engine():
    """Engine whose registry is empty: only the extensions passed in exist."""
    return Engine(ExtensionRegistry())


@pytest.fixture
def make_extension():
    """
    Build a test extension that writes ``extras[<key>] = <value>`` on every word.

    ``calls`` (a list) records the id once per word invocation;
    ``fail=True`` makes the enhancer raise.
    """

    def factory(
        ext_id,
        dependencies=(),
        key=None,
        value=None,
        fail=False,
        calls=None,
        requires=None,
        conflicts=(),
    ):
        field_name = key or ext_id

        def enhance(word):
            if calls is not None:
                calls.append(ext_id)
            if fail:
                raise RuntimeError(f"{ext_id} exploded")
            return {field_name: ext_id if value is None else value}

        return Extension(
            id=ext_id,
            dependencies=dependencies,
            provides={"extras": [field_name]},
            requires=requires,
            conflicts=conflicts,
            enhance=enhance,
        )

    return factory
