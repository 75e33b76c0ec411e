"""
Respelling — Turns an IPA transcription into a reader-friendly respelling.

    /həˈloʊ/  ->  huh-LOH

Stressed syllables are upper case; syllables are joined with "-".
"""

from typing import Any, Optional

from glossa.core.contracts import Extension
from glossa.core.errors import MissingDependencyError
from glossa.tree.schema import WordNode

EXTENSION_ID = "respelling"
# Registered alongside the strict instance; leaves untranscribed words alone
LENIENT_EXTENSION_ID = "respelling-known"

IPA_TO_RESPELLING = {
    # Vowels
    "iː": "ee",
    "ɪ": "ih",
    "eɪ": "ay",
    "ɛ": "eh",
    "æ": "a",
    "ɑː": "ah",
    "ɒ": "o",
    "ɔː": "aw",
    "oʊ": "oh",
    "ʊ": "oo",
    "uː": "oo",
    "ʌ": "uh",
    "ɜː": "er",
    "ə": "uh",
    # Diphthongs
    "aɪ": "eye",
    "aʊ": "ow",
    "ɔɪ": "oy",
    # Consonants
    "tʃ": "ch",
    "dʒ": "j",
    "θ": "th",
    "ð": "th",
    "ʃ": "sh",
    "ʒ": "zh",
    "ŋ": "ng",
    "j": "y",
    "ʰ": "h",
}

# Longest symbols first so "oʊ" wins over "o"
_SORTED_SYMBOLS = sorted(IPA_TO_RESPELLING, key=len, reverse=True)

PRIMARY_STRESS = "ˈ"
SECONDARY_STRESS = "ˌ"
SYLLABLE_BREAK = "."


def ipa_to_respelling(ipa: str) -> str:
    """
    Convert an IPA string to a respelling.

    Slashes and brackets are ignored. A primary stress mark starts a
    stressed syllable; a secondary stress mark or a syllable break
    starts an unstressed one. Unmapped characters are copied through.
    """
    cleaned = "".join(c for c in ipa if c not in "/[]")
    syllables: list[tuple[str, bool]] = []
    current = ""
    stressed = False

    i = 0
    while i < len(cleaned):
        char = cleaned[i]

        if char == PRIMARY_STRESS:
            if current:
                syllables.append((current, stressed))
                current = ""
            stressed = True
            i += 1
            continue

        if char in (SECONDARY_STRESS, SYLLABLE_BREAK):
            if current:
                syllables.append((current, stressed))
                current = ""
            stressed = False
            i += 1
            continue

        for symbol in _SORTED_SYMBOLS:
            if cleaned.startswith(symbol, i):
                current += IPA_TO_RESPELLING[symbol]
                i += len(symbol)
                break
        else:
            current += char
            i += 1

    if current:
        syllables.append((current, stressed))

    return "-".join(text.upper() if is_stressed else text.lower() for text, is_stressed in syllables)


def create_respelling_extension(
    depends_on: Optional[str] = "transcription",
    skip_untranscribed: bool = False,
    extension_id: str = EXTENSION_ID,
) -> Extension:
    """
    Create a respelling extension.

    Args:
        depends_on: Id of the extension producing ``extras.transcription``;
            None leaves ordering to the caller (or to derived dependencies)
        skip_untranscribed: Leave words without a transcription alone
            instead of failing on them
        extension_id: Extension id
    """

    def enhance(word: WordNode) -> Optional[dict[str, Any]]:
        transcription = word.extras.get("transcription")
        ipa = transcription.get("ipa") if isinstance(transcription, dict) else None

        if not ipa:
            if skip_untranscribed:
                return None
            raise MissingDependencyError(
                extension_id,
                depends_on or "transcription",
                "extras.transcription.ipa",
                "A transcription extension must run before the respelling extension.",
            )

        return {"respelling": {"text": ipa_to_respelling(ipa), "from_ipa": ipa}}

    return Extension(
        id=extension_id,
        name="IPA Respelling",
        description="Converts IPA to reader-friendly respellings",
        dependencies=(depends_on,) if depends_on else (),
        requires={} if skip_untranscribed else {"extras": ["transcription"]},
        provides={"extras": ["respelling"]},
        enhance=enhance,
        options={"skip_untranscribed": skip_untranscribed},
    )
