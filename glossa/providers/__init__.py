"""Providers — Async lookup sources used by leaf extensions."""

from glossa.providers.backends import CachedProvider, DictionaryProvider, StubProvider
from glossa.providers.interfaces import DataProvider, ProviderContext

__all__ = [
    # Interface
    "DataProvider",
    "ProviderContext",
    # Backends
    "CachedProvider",
    "DictionaryProvider",
    "StubProvider",
]
