"""Provider Backends — Concrete implementations of the provider interface."""

from glossa.providers.backends.cached import CachedProvider
from glossa.providers.backends.dictionary import DATA_DIR, DictionaryProvider, normalize_word
from glossa.providers.backends.stub import StubProvider

__all__ = [
    "CachedProvider",
    "DictionaryProvider",
    "StubProvider",
    "DATA_DIR",
    "normalize_word",
]
