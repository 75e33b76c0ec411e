"""
Contracts — The extension descriptor and its data contract.

An extension is data plus up to three behaviors. Behaviors may be
plain functions or coroutine functions; the executor awaits whatever
they return.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from glossa.tree.enums import NodeType
from glossa.tree.schema import GlossaNode, RootNode, WordNode

# Behavior signatures. Each may also return an awaitable of the same.
TransformFn = Callable[[RootNode], Union[Optional[RootNode], Awaitable[Optional[RootNode]]]]
VisitorFn = Callable[[GlossaNode], Union[Optional[GlossaNode], Awaitable[Optional[GlossaNode]]]]
EnhancerFn = Callable[[WordNode], Union[Optional[dict], Awaitable[Optional[dict]]]]


@dataclass(frozen=True)
class FieldContract:
    """
    Field names an extension reads (requires) or writes (provides).

    - extras: top-level keys of a node's ``extras``
    - metadata: fields of a word's ``metadata``
    - nodes: node tags that must exist in (or are created in) the tree
    """

    extras: frozenset[str] = frozenset()
    metadata: frozenset[str] = frozenset()
    nodes: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        extras: Iterable[str] = (),
        metadata: Iterable[str] = (),
        nodes: Iterable[Union[str, NodeType]] = (),
    ) -> "FieldContract":
        node_tags = []
        for tag in nodes:
            parsed = NodeType.from_tag(tag)
            if parsed is None:
                raise ValueError(f"Unknown node tag in contract: {tag!r}")
            node_tags.append(parsed.value)
        return cls(
            extras=frozenset(extras),
            metadata=frozenset(metadata),
            nodes=frozenset(node_tags),
        )

    @classmethod
    def coerce(cls, value: Union["FieldContract", Mapping[str, Iterable[str]], None]) -> "FieldContract":
        """Accept a contract, a ``{"extras": [...], ...}`` mapping, or None."""
        if value is None:
            return cls()
        if isinstance(value, FieldContract):
            return value
        unknown = set(value) - {"extras", "metadata", "nodes"}
        if unknown:
            raise ValueError(f"Unknown contract sections: {sorted(unknown)}")
        return cls.of(
            extras=value.get("extras", ()),
            metadata=value.get("metadata", ()),
            nodes=value.get("nodes", ()),
        )

    def is_empty(self) -> bool:
        return not (self.extras or self.metadata or self.nodes)

    def qualified(self) -> set[str]:
        """Field names prefixed by section, e.g. ``extras.transcription``."""
        return (
            {f"extras.{name}" for name in self.extras}
            | {f"metadata.{name}" for name in self.metadata}
            | {f"nodes.{name}" for name in self.nodes}
        )

    def overlap(self, other: "FieldContract") -> list[str]:
        """Qualified field names present in both contracts, sorted."""
        return sorted(self.qualified() & other.qualified())


@dataclass(frozen=True, eq=False)
class Extension:
    """
    Extension descriptor.

    Immutable for the duration of a run. ``visit`` keys may be given as
    ``NodeType`` members, full tags (``"WordNode"``) or short names
    (``"word"``); they are normalized to ``NodeType``.
    """

    id: str
    name: str = ""
    description: str = ""
    dependencies: tuple[str, ...] = ()
    provides: FieldContract = field(default_factory=FieldContract)
    requires: FieldContract = field(default_factory=FieldContract)
    conflicts: tuple[str, ...] = ()
    transform: Optional[TransformFn] = None
    visit: Mapping[NodeType, VisitorFn] = field(default_factory=dict)
    enhance: Optional[EnhancerFn] = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Extension id must be a non-empty string")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "name", self.name or self.id)
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "conflicts", tuple(self.conflicts))
        object.__setattr__(self, "provides", FieldContract.coerce(self.provides))
        object.__setattr__(self, "requires", FieldContract.coerce(self.requires))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

        visitors: dict[NodeType, VisitorFn] = {}
        for tag, fn in dict(self.visit or {}).items():
            node_type = NodeType.from_tag(tag)
            if node_type is None:
                raise ValueError(f"Extension '{self.id}' has a visitor for unknown tag {tag!r}")
            visitors[node_type] = fn
        object.__setattr__(self, "visit", MappingProxyType(visitors))

    @property
    def has_behavior(self) -> bool:
        return bool(self.transform or self.visit or self.enhance)

    def visitor_for(self, node_type: NodeType) -> Optional[VisitorFn]:
        return self.visit.get(node_type)

    def declares_conflict_with(self, other_id: str) -> bool:
        return other_id in self.conflicts
