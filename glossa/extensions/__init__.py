"""
Extensions — Built-in annotation extensions.

Each module exposes a ``create_*_extension`` factory. ``register_builtins``
puts one default instance of each into a registry, plus
``respelling-known``: a respelling that leaves words without a
transcription alone instead of failing on them.
"""

from glossa.core.registry import ExtensionRegistry
from glossa.extensions.difficulty import create_difficulty_extension
from glossa.extensions.frequency import create_frequency_extension
from glossa.extensions.respelling import (
    LENIENT_EXTENSION_ID as LENIENT_RESPELLING_ID,
    create_respelling_extension,
    ipa_to_respelling,
)
from glossa.extensions.sentence_stats import create_sentence_stats_extension
from glossa.extensions.transcription import create_transcription_extension
from glossa.extensions.word_joiner import create_word_joiner_extension


def builtin_extensions() -> list:
    """Default instances, in registration order."""
    return [
        create_word_joiner_extension(),
        create_transcription_extension(),
        create_respelling_extension(),
        create_frequency_extension(),
        create_difficulty_extension(),
        create_sentence_stats_extension(),
    ]


def register_builtins(registry: ExtensionRegistry, overwrite: bool = False) -> ExtensionRegistry:
    registry.register_many(builtin_extensions(), overwrite=overwrite)
    registry.register(
        create_respelling_extension(skip_untranscribed=True, extension_id=LENIENT_RESPELLING_ID),
        overwrite=overwrite,
    )
    return registry


__all__ = [
    "LENIENT_RESPELLING_ID",
    "builtin_extensions",
    "register_builtins",
    "create_transcription_extension",
    "create_respelling_extension",
    "create_frequency_extension",
    "create_difficulty_extension",
    "create_sentence_stats_extension",
    "create_word_joiner_extension",
    "ipa_to_respelling",
]
