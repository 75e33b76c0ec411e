"""
Frequency — Word usage frequency with display properties.

Sources, first hit wins:
1. ``word.metadata.frequency``
2. a raw ``extras["frequency"]`` string already on the word
3. the custom mapping passed to the factory
4. the provider (bundled English frequency list by default)

Output:

    extras["frequency"] = {"level": "common", "display": "Common",
                           "color": "blue", "priority": 3}
"""

from enum import Enum
from typing import Any, Mapping, Optional

from glossa.core.contracts import Extension
from glossa.core.logging import get_extension_logger
from glossa.core.traversal import get_word_text
from glossa.providers.backends.dictionary import DictionaryProvider
from glossa.providers.interfaces import DataProvider
from glossa.tree.schema import WordNode

EXTENSION_ID = "frequency"

log = get_extension_logger(EXTENSION_ID)


class FrequencyLevel(str, Enum):
    RARE = "rare"
    UNCOMMON = "uncommon"
    COMMON = "common"
    VERY_COMMON = "very-common"


FREQUENCY_DISPLAY = {
    FrequencyLevel.RARE: ("Rare", "gray", 1),
    FrequencyLevel.UNCOMMON: ("Uncommon", "yellow", 2),
    FrequencyLevel.COMMON: ("Common", "blue", 3),
    FrequencyLevel.VERY_COMMON: ("Very Common", "green", 4),
}

# Three-step scale used by LinguisticMetadata
_SCALE_ALIASES = {
    "high": FrequencyLevel.VERY_COMMON,
    "medium": FrequencyLevel.COMMON,
    "low": FrequencyLevel.RARE,
}


def normalize_frequency(value: Any) -> Optional[FrequencyLevel]:
    """Map free-form frequency text to a level; None when unrecognised."""
    text = str(value).strip().lower()
    if not text:
        return None
    try:
        return FrequencyLevel(text)
    except ValueError:
        pass
    if text in _SCALE_ALIASES:
        return _SCALE_ALIASES[text]
    # Order matters: "uncommon" contains "common"
    if "very" in text or "most" in text:
        return FrequencyLevel.VERY_COMMON
    if "uncommon" in text:
        return FrequencyLevel.UNCOMMON
    if "rare" in text:
        return FrequencyLevel.RARE
    if "common" in text or "frequent" in text:
        return FrequencyLevel.COMMON
    return None


def frequency_metadata(level: FrequencyLevel) -> dict[str, Any]:
    display, color, priority = FREQUENCY_DISPLAY[level]
    return {"level": level.value, "display": display, "color": color, "priority": priority}


_default_provider: Optional[DictionaryProvider] = None


def get_default_provider() -> DictionaryProvider:
    """Bundled English frequency list, loaded once."""
    global _default_provider
    if _default_provider is None:
        _default_provider = DictionaryProvider.bundled("en_frequency")
    return _default_provider


def create_frequency_extension(
    provider: Optional[DataProvider] = None,
    custom_mapping: Optional[Mapping[str, str]] = None,
    normalize: bool = True,
    use_provider: bool = True,
) -> Extension:
    """
    Create a frequency extension.

    Args:
        provider: Word text -> frequency text (default: bundled list)
        custom_mapping: Word text -> frequency text, checked before the provider
        normalize: Accept free-form values ("very frequent", "high");
            when False only exact level names are accepted
        use_provider: Consult the provider at all
    """
    mapping = dict(custom_mapping or {})

    def parse(value: Any) -> Optional[FrequencyLevel]:
        if normalize:
            return normalize_frequency(value)
        try:
            return FrequencyLevel(str(value))
        except ValueError:
            return None

    async def enhance(word: WordNode) -> Optional[dict[str, Any]]:
        text = get_word_text(word)
        raw = word.metadata.frequency if word.metadata else None
        if raw is None and isinstance(word.extras.get("frequency"), str):
            raw = word.extras["frequency"]
        if raw is None and text in mapping:
            raw = mapping[text]
        if raw is None and use_provider and text:
            raw = await (provider or get_default_provider()).get_data(text)

        if raw is None:
            return None

        level = parse(raw)
        if level is None:
            log.debug("unrecognised_frequency", word=text, value=str(raw))
            return None

        return {"frequency": frequency_metadata(level)}

    return Extension(
        id=EXTENSION_ID,
        name="Word Frequency",
        description="Processes and enhances word frequency metadata",
        provides={"extras": ["frequency"]},
        enhance=enhance,
        options={"normalize": normalize, "use_provider": use_provider},
    )
