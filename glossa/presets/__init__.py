"""Presets — Named YAML run configurations."""

from glossa.presets.loader import (
    PRESETS_DIR,
    clear_cache,
    get_preset,
    list_presets,
    load_preset,
    load_preset_from_path,
    parse_preset,
    run_preset,
)
from glossa.presets.models import MergeSettings, Preset, PresetSettings

__all__ = [
    "Preset",
    "PresetSettings",
    "MergeSettings",
    "PRESETS_DIR",
    "load_preset",
    "load_preset_from_path",
    "parse_preset",
    "get_preset",
    "list_presets",
    "clear_cache",
    "run_preset",
]
