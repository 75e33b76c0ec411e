"""
Transcription — Adds a phonetic transcription to each word.

Looks the word text up in a provider (the bundled English IPA
dictionary by default) and writes:

    extras["transcription"] = {"ipa": "/həˈloʊ/", "source": "dictionary"}

Words the provider doesn't know are left alone.
"""

from typing import Any, Optional

from glossa.core.contracts import Extension
from glossa.core.logging import get_extension_logger
from glossa.core.traversal import get_word_text
from glossa.providers.backends.dictionary import DictionaryProvider
from glossa.providers.interfaces import DataProvider
from glossa.tree.schema import WordNode

EXTENSION_ID = "transcription"

log = get_extension_logger(EXTENSION_ID)

_default_provider: Optional[DictionaryProvider] = None


def get_default_provider() -> DictionaryProvider:
    """Bundled English IPA dictionary, loaded once."""
    global _default_provider
    if _default_provider is None:
        _default_provider = DictionaryProvider.bundled("en_ipa")
    return _default_provider


def create_transcription_extension(
    provider: Optional[DataProvider] = None,
    scheme: str = "ipa",
    source: str = "dictionary",
    extension_id: str = EXTENSION_ID,
) -> Extension:
    """
    Create a transcription extension.

    Args:
        provider: Word text -> transcription string (default: bundled IPA)
        scheme: Key the transcription is stored under
        source: Recorded as ``transcription.source``
        extension_id: Override for running several schemes side by side
    """

    async def enhance(word: WordNode) -> Optional[dict[str, Any]]:
        text = get_word_text(word)
        if not text:
            return None

        lookup = provider or get_default_provider()
        value = await lookup.get_data(text, {"lang": word.lang or "en", "scheme": scheme})
        if value is None:
            log.debug("no_transcription", word=text)
            return None

        return {"transcription": {scheme: value, "source": source}}

    return Extension(
        id=extension_id,
        name="Transcription",
        description=f"Adds {scheme.upper()} transcription to words",
        provides={"extras": ["transcription"]},
        enhance=enhance,
        options={"scheme": scheme, "source": source},
    )
