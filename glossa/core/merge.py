"""
Merge — Fold an extension's partial output into a node's extras.

Rules:
- dict values merge key by key, recursively
- lists and scalars are replaced (array strategy "replace", the default)
- a None value in the incoming partial never deletes an existing key
- on a leaf written by two extensions, the later one wins unless the
  conflict strategy says otherwise

Inputs are never mutated.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from glossa.core.errors import FieldConflictError
from glossa.core.logging import LogChannel, get_logger
from glossa.tree.schema import GlossaNode

log = get_logger(LogChannel.MERGE)


class ArrayStrategy(str, Enum):
    REPLACE = "replace"
    CONCAT = "concat"
    UNIQUE = "unique"


class ConflictStrategy(str, Enum):
    """What to do when an extension overwrites another extension's leaf."""

    LAST_WINS = "last_wins"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class MergeOptions:
    array_strategy: ArrayStrategy = ArrayStrategy.REPLACE
    conflict_strategy: ConflictStrategy = ConflictStrategy.LAST_WINS


DEFAULT_MERGE_OPTIONS = MergeOptions()


def deep_merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    options: MergeOptions = DEFAULT_MERGE_OPTIONS,
    owners: Optional[Mapping[str, str]] = None,
    incoming_extension_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Merge ``source`` into a copy of ``target``.

    Args:
        target: Existing annotations
        source: Partial annotations from one extension
        options: Array and conflict strategies
        owners: Top-level key -> id of the extension that wrote it.
            Keys without an owner came from the input document and may
            always be overwritten.
        incoming_extension_id: Extension providing ``source``

    Returns:
        A new merged dict

    Raises:
        FieldConflictError: Only under ConflictStrategy.ERROR
    """
    return _merge(target, source, (), options, owners or {}, incoming_extension_id)


def _merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    path: tuple[str, ...],
    options: MergeOptions,
    owners: Mapping[str, str],
    incoming: Optional[str],
) -> dict[str, Any]:
    # Keys the source leaves alone are copied so the result never aliases target
    result = {
        key: value if source.get(key) is not None else copy.deepcopy(value)
        for key, value in target.items()
    }

    for key, incoming_value in source.items():
        if incoming_value is None:
            continue

        existing = target.get(key)
        key_path = path + (key,)

        if key not in target or existing is None:
            result[key] = copy.deepcopy(incoming_value)
        elif isinstance(existing, Mapping) and isinstance(incoming_value, Mapping):
            result[key] = _merge(existing, incoming_value, key_path, options, owners, incoming)
        elif isinstance(existing, list) and isinstance(incoming_value, list):
            result[key] = _merge_lists(existing, incoming_value, options.array_strategy)
        else:
            result[key] = _resolve_leaf(key_path, existing, incoming_value, options, owners, incoming)

    return result


def _merge_lists(existing: list, incoming: list, strategy: ArrayStrategy) -> list:
    if strategy == ArrayStrategy.CONCAT:
        return copy.deepcopy(existing) + copy.deepcopy(incoming)
    if strategy == ArrayStrategy.UNIQUE:
        merged: list = []
        for item in existing + incoming:
            if item not in merged:
                merged.append(copy.deepcopy(item))
        return merged
    return copy.deepcopy(incoming)


def _resolve_leaf(
    key_path: tuple[str, ...],
    existing: Any,
    incoming_value: Any,
    options: MergeOptions,
    owners: Mapping[str, str],
    incoming: Optional[str],
) -> Any:
    if existing == incoming_value:
        return copy.deepcopy(incoming_value)

    owner = owners.get(key_path[0])
    # Input-document data, or the same extension rewriting its own field
    if owner is None or owner == incoming:
        return copy.deepcopy(incoming_value)

    field_path = ".".join(key_path)
    if options.conflict_strategy == ConflictStrategy.ERROR:
        raise FieldConflictError(field_path, owner, incoming or "unknown", existing, incoming_value)
    if options.conflict_strategy == ConflictStrategy.WARN:
        log.warning(
            "annotation_overwritten",
            field=field_path,
            existing_extension=owner,
            incoming_extension=incoming,
        )
    return copy.deepcopy(incoming_value)


def find_conflicts(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> list[str]:
    """
    Dotted paths whose leaf values ``source`` would overwrite.

    Lists meeting lists are not conflicts; they merge by strategy.
    """
    conflicts: list[str] = []
    for key, incoming_value in source.items():
        existing = target.get(key)
        if incoming_value is None or existing is None:
            continue
        key_path = path + (key,)
        if isinstance(existing, Mapping) and isinstance(incoming_value, Mapping):
            conflicts.extend(find_conflicts(existing, incoming_value, key_path))
        elif isinstance(existing, list) and isinstance(incoming_value, list):
            continue
        elif existing != incoming_value:
            conflicts.append(".".join(key_path))
    return conflicts


def merge_extras(
    node: GlossaNode,
    partial: Mapping[str, Any],
    options: MergeOptions = DEFAULT_MERGE_OPTIONS,
    owners: Optional[Mapping[str, str]] = None,
    incoming_extension_id: Optional[str] = None,
) -> list[str]:
    """
    Merge ``partial`` into ``node.extras`` in place.

    Returns the top-level keys that carried a value.
    """
    if not isinstance(partial, Mapping):
        raise TypeError(
            f"Enhancer output must be a mapping, got {type(partial).__name__}"
        )
    node.extras = deep_merge(node.extras, partial, options, owners, incoming_extension_id)
    written = [key for key, value in partial.items() if value is not None]
    log.debug("extras_merged", node_type=node.node_type.value, keys=written)
    return written
