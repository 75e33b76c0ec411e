"""
Cached Backend — TTL cache in front of another provider.

Only hits are cached; a miss is asked again next time. Concurrent
lookups of the same key share one backend call.
"""

import asyncio
import time
from collections import OrderedDict
from typing import Any, Iterable, Optional

from glossa.core.logging import LogChannel, get_logger
from glossa.providers.interfaces import DataProvider, ProviderContext

log = get_logger(LogChannel.PROVIDER)


class CachedProvider(DataProvider[Any, Any]):
    """
    Wrap a provider with a bounded cache.

    Args:
        provider: The provider to wrap
        ttl: Entry lifetime in seconds (None = forever)
        max_size: Oldest entry is evicted beyond this size
    """

    def __init__(
        self,
        provider: DataProvider,
        ttl: Optional[float] = None,
        max_size: int = 1000,
        clock=time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._provider = provider
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._cache: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._pending: dict[str, asyncio.Task] = {}
        self.hits = 0
        self.misses = 0

    @property
    def name(self) -> str:
        return f"cached:{self._provider.name}"

    def cache_key(self, input: Any, context: ProviderContext = None) -> str:
        return self._provider.cache_key(input, context)

    def _lookup(self, key: str) -> Optional[Any]:
        cached = self._cache.get(key)
        if cached is None:
            return None
        value, stored_at = cached
        if self._ttl is not None and self._clock() - stored_at > self._ttl:
            del self._cache[key]
            return None
        return value

    def _store(self, key: str, value: Any) -> None:
        if key not in self._cache and len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
        self._cache[key] = (value, self._clock())

    async def get_data(self, input: Any, context: ProviderContext = None) -> Optional[Any]:
        key = self.cache_key(input, context)
        value = self._lookup(key)
        if value is not None:
            self.hits += 1
            return value

        pending = self._pending.get(key)
        if pending is not None:
            # Another caller is already fetching this key
            self.hits += 1
            return await pending

        self.misses += 1
        task = asyncio.ensure_future(self._fetch(key, input, context))
        self._pending[key] = task
        try:
            return await task
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]

    async def _fetch(self, key: str, input: Any, context: ProviderContext) -> Optional[Any]:
        value = await self._provider.get_data(input, context)
        if value is not None:
            self._store(key, value)
        return value

    async def get_batch(self, inputs: Iterable[Any], context: ProviderContext = None) -> dict:
        result = {}
        uncached = []
        seen: set[str] = set()
        for item in inputs:
            key = self.cache_key(item, context)
            value = self._lookup(key)
            if value is not None:
                self.hits += 1
                result[item] = value
            elif key not in seen:
                seen.add(key)
                uncached.append(item)

        hit_count = len(result)
        if uncached:
            self.misses += len(uncached)
            fetched = await self._provider.get_batch(uncached, context)
            for item, value in fetched.items():
                self._store(self.cache_key(item, context), value)
                result[item] = value

        log.debug("cache_batch", provider=self.name, hits=hit_count, fetched=len(uncached))
        return result

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
