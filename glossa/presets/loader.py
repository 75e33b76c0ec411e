"""
Preset Loader — Load presets from YAML files.

Bundled presets live next to this module as ``<name>.yaml``.
"""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from glossa.core.context import RunResult
from glossa.core.logging import LogChannel, get_logger
from glossa.presets.models import Preset
from glossa.tree.schema import RootNode

log = get_logger(LogChannel.SYSTEM)

# Default preset directory
PRESETS_DIR = Path(__file__).parent


def load_preset(name: str, presets_dir: Optional[Path] = None) -> Preset:
    """
    Load a preset by name.

    Args:
        name: Preset name (without .yaml extension)
        presets_dir: Directory to look in (default: bundled presets)

    Returns:
        Parsed Preset

    Raises:
        FileNotFoundError: If the preset file doesn't exist
        ValueError: If the preset is invalid
    """
    path = (presets_dir or PRESETS_DIR) / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Preset not found: {path}")
    return load_preset_from_path(path)


def load_preset_from_path(path: Union[str, Path]) -> Preset:
    """Load a preset from an arbitrary path."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Preset not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Preset {path} is not valid YAML: {e}") from e

    return parse_preset(data, source=str(path))


def parse_preset(data: object, source: str = "<dict>") -> Preset:
    """Validate raw preset data. ``id`` defaults to the file stem."""
    if not isinstance(data, dict):
        raise ValueError(f"Preset {source} must be a mapping, got {type(data).__name__}")
    if "id" not in data and source != "<dict>":
        data = {**data, "id": Path(source).stem}
    try:
        preset = Preset.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid preset {source}: {e}") from e

    log.verbose("preset_loaded", preset=preset.id, extensions=preset.extensions)
    return preset


def list_presets(presets_dir: Optional[Path] = None) -> list[str]:
    """List available preset names."""
    return sorted(p.stem for p in (presets_dir or PRESETS_DIR).glob("*.yaml"))


# Cache for loaded presets
_cache: dict[str, Preset] = {}


def get_preset(name: str, use_cache: bool = True) -> Preset:
    """Get a bundled preset, using cache by default."""
    if use_cache and name in _cache:
        return _cache[name]

    preset = load_preset(name)
    _cache[name] = preset
    return preset


def clear_cache() -> None:
    """Clear the preset cache."""
    _cache.clear()


def run_preset(tree: RootNode, name: str, engine=None) -> RunResult:
    """
    Run a bundled preset over a tree.

    Args:
        tree: Document root
        name: Preset name
        engine: Engine to use (default: the global engine)
    """
    from glossa.core.engine import get_engine

    preset = get_preset(name)
    return (engine or get_engine()).run(tree, options=preset.to_run_options())
