"""
Dictionary Backend — In-memory lookup table, optionally loaded from YAML.

YAML layout:

    name: en-ipa
    description: ...
    entries:
      hello: "/həˈloʊ/"
"""

from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import yaml

from glossa.core.logging import LogChannel, get_logger
from glossa.providers.interfaces import DataProvider, ProviderContext

log = get_logger(LogChannel.PROVIDER)

# Bundled data files
DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def normalize_word(text: str) -> str:
    """Default key normalisation: trimmed, lowercase."""
    return text.strip().lower()


class DictionaryProvider(DataProvider[str, Any]):
    """
    Lookup in a fixed mapping.

    Args:
        entries: key -> value
        name: Provider name
        normalize: Applied to keys at load time and to every input;
            None disables normalisation
    """

    def __init__(
        self,
        entries: Mapping[str, Any],
        name: str = "dictionary",
        normalize: Optional[Callable[[str], str]] = normalize_word,
    ):
        self._name = name
        self._normalize = normalize
        self._entries = {self._key(k): v for k, v in entries.items()}

    @property
    def name(self) -> str:
        return self._name

    def _key(self, text: str) -> str:
        return self._normalize(text) if self._normalize else text

    async def get_data(self, input: str, context: ProviderContext = None) -> Optional[Any]:
        value = self._entries.get(self._key(input))
        if value is None:
            log.debug("provider_miss", provider=self._name, input=input)
        return value

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and self._key(text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_yaml(
        cls,
        path: Union[str, Path],
        normalize: Optional[Callable[[str], str]] = normalize_word,
    ) -> "DictionaryProvider":
        """
        Load a provider from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file has no ``entries`` mapping
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Dictionary not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        entries = data.get("entries")
        if not isinstance(entries, dict):
            raise ValueError(f"Dictionary {path} must define an 'entries' mapping")

        log.verbose("dictionary_loaded", path=str(path), entries=len(entries))
        return cls(entries, name=data.get("name", path.stem), normalize=normalize)

    @classmethod
    def bundled(cls, name: str) -> "DictionaryProvider":
        """Load one of the data files shipped with glossa (``en_ipa``, ``en_frequency``)."""
        return cls.from_yaml(DATA_DIR / f"{name}.yaml")
