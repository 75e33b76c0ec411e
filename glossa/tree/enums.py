"""
Tree Enums — Node tags and related labels.

No stringly-typed node tags scattered across extensions.
"""

from enum import Enum
from typing import Optional, Union


class NodeType(str, Enum):
    """
    Tag carried in the ``type`` field of every tree node.

    The short name (``"word"``, ``"sentence"``...) is accepted wherever
    a visitor table is keyed by tag.
    """

    ROOT = "RootNode"
    PARAGRAPH = "ParagraphNode"
    SENTENCE = "SentenceNode"
    WORD = "WordNode"
    TEXT = "TextNode"
    PUNCTUATION = "PunctuationNode"
    SYMBOL = "SymbolNode"
    WHITESPACE = "WhiteSpaceNode"
    SOURCE = "SourceNode"

    @property
    def short_name(self) -> str:
        """Lower-case tag without the ``Node`` suffix."""
        return self.value[: -len("Node")].lower()

    @classmethod
    def from_tag(cls, tag: Union[str, "NodeType"]) -> Optional["NodeType"]:
        """Parse a full tag, short name, or enum member."""
        if isinstance(tag, NodeType):
            return tag
        try:
            return cls(tag)
        except ValueError:
            pass
        lowered = tag.lower()
        for member in cls:
            if member.short_name == lowered or member.name.lower() == lowered:
                return member
        return None


CONTAINER_TYPES = frozenset({
    NodeType.ROOT,
    NodeType.PARAGRAPH,
    NodeType.SENTENCE,
    NodeType.WORD,
})


class PronunciationContext(str, Enum):
    """Where a pronunciation variant is used."""

    FORMAL = "formal"
    INFORMAL = "informal"
    HISTORICAL = "historical"
    REGIONAL = "regional"
    DIALECTAL = "dialectal"
