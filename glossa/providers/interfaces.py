"""
Provider Interfaces — Abstract lookup sources for leaf extensions.

Providers are data sources, not authorities. An extension decides
what to do with a missing entry; the provider only reports it.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Optional, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

# Free-form lookup context, e.g. {"lang": "en", "scheme": "ipa"}
ProviderContext = Optional[dict[str, Any]]


class DataProvider(ABC, Generic[InputT, OutputT]):
    """
    Abstract interface for data providers.

    Implementations must:
    - Return None for not-found
    - Raise only on genuine failure (I/O, bad data)
    - Handle their own timeouts
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging."""
        ...

    @abstractmethod
    async def get_data(self, input: InputT, context: ProviderContext = None) -> Optional[OutputT]:
        """
        Look up one input.

        Args:
            input: Lookup key (usually word text)
            context: Optional lookup context

        Returns:
            The entry, or None when there is none
        """
        ...

    async def get_batch(
        self,
        inputs: Iterable[InputT],
        context: ProviderContext = None,
    ) -> dict[InputT, OutputT]:
        """Look up many inputs. Missing entries are absent from the result."""
        inputs = list(inputs)
        values = await asyncio.gather(*(self.get_data(i, context) for i in inputs))
        return {i: v for i, v in zip(inputs, values) if v is not None}

    def cache_key(self, input: InputT, context: ProviderContext = None) -> str:
        if not context:
            return str(input)
        scope = ",".join(f"{k}={context[k]}" for k in sorted(context))
        return f"{scope}|{input}"
