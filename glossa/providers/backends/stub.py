"""
Stub Backend — No-op provider for testing.

Used to run extensions without any data behind them.
"""

from typing import Any, Optional

from glossa.providers.interfaces import DataProvider, ProviderContext


class StubProvider(DataProvider[Any, Any]):
    """Stub provider that finds nothing."""

    @property
    def name(self) -> str:
        return "stub"

    async def get_data(self, input: Any, context: ProviderContext = None) -> Optional[Any]:
        """Return None for everything."""
        return None
