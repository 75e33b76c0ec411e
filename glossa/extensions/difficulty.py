"""
Difficulty — Learner difficulty level per word.

Taken from ``metadata.difficulty`` or a raw ``extras["difficulty"]``
string when present, then the custom mapping, and otherwise derived
from the frequency annotation. Runs after the frequency extension when
both are selected.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from glossa.core.contracts import Extension
from glossa.core.traversal import get_word_text
from glossa.tree.schema import WordNode

EXTENSION_ID = "difficulty"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


DIFFICULTY_DISPLAY = {
    DifficultyLevel.BEGINNER: ("Beginner", "green", 1),
    DifficultyLevel.INTERMEDIATE: ("Intermediate", "yellow", 2),
    DifficultyLevel.ADVANCED: ("Advanced", "red", 3),
}

FREQUENCY_TO_DIFFICULTY = {
    "very-common": DifficultyLevel.BEGINNER,
    "common": DifficultyLevel.BEGINNER,
    "uncommon": DifficultyLevel.INTERMEDIATE,
    "rare": DifficultyLevel.ADVANCED,
}


def normalize_difficulty(value: Any) -> Optional[DifficultyLevel]:
    text = str(value).strip().lower()
    if any(k in text for k in ("beginner", "basic", "easy")):
        return DifficultyLevel.BEGINNER
    if any(k in text for k in ("advanced", "expert", "hard")):
        return DifficultyLevel.ADVANCED
    if "intermediate" in text or "medium" in text:
        return DifficultyLevel.INTERMEDIATE
    return None


def difficulty_metadata(level: DifficultyLevel, derived: bool = False) -> dict[str, Any]:
    display, color, priority = DIFFICULTY_DISPLAY[level]
    return {
        "level": level.value,
        "display": display,
        "color": color,
        "priority": priority,
        "derived_from_frequency": derived,
    }


def create_difficulty_extension(
    custom_mapping: Optional[Mapping[str, str]] = None,
    derive_from_frequency: bool = True,
) -> Extension:
    """
    Create a difficulty extension.

    Args:
        custom_mapping: Word text -> difficulty text
        derive_from_frequency: Fall back to ``extras["frequency"]["level"]``
    """
    mapping = dict(custom_mapping or {})

    def enhance(word: WordNode) -> Optional[dict[str, Any]]:
        raw = getattr(word.metadata, "difficulty", None) if word.metadata else None
        if raw is None and isinstance(word.extras.get("difficulty"), str):
            raw = word.extras["difficulty"]
        if raw is None:
            raw = mapping.get(get_word_text(word))

        if raw is not None:
            level = normalize_difficulty(raw)
            return {"difficulty": difficulty_metadata(level)} if level else None

        if not derive_from_frequency:
            return None
        frequency = word.extras.get("frequency")
        if isinstance(frequency, dict) and frequency.get("level") in FREQUENCY_TO_DIFFICULTY:
            level = FREQUENCY_TO_DIFFICULTY[frequency["level"]]
            return {"difficulty": difficulty_metadata(level, derived=True)}
        return None

    return Extension(
        id=EXTENSION_ID,
        name="Word Difficulty",
        description="Processes and enhances word difficulty level metadata",
        dependencies=("frequency",) if derive_from_frequency else (),
        provides={"extras": ["difficulty"]},
        enhance=enhance,
        options={"derive_from_frequency": derive_from_frequency},
    )
