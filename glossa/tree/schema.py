"""
Tree Schema v0.1 — Pydantic models for annotated linguistic trees.

Every node carries a ``type`` tag and a schema-less ``extras`` dict
that extensions write into. Containers own an ordered ``children`` list.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from glossa.tree.enums import NodeType, PronunciationContext

TREE_VERSION = "0.1.0"


# ============================================================================
# Word-level records
# ============================================================================

class PronunciationVariant(BaseModel):
    """An alternative pronunciation under one transcription scheme."""

    text: str = Field(..., description="Variant text in the transcription scheme")
    context: PronunciationContext = Field(..., description="Where the variant is used")
    notes: Optional[str] = Field(None, description="Free-form notes")


class TranscriptionInfo(BaseModel):
    """A word's rendering under one transcription scheme (ipa, romaji...)."""

    text: str = Field(..., description="The transcription text")
    variants: list[PronunciationVariant] = Field(default_factory=list)
    tone: Optional[int] = Field(None, description="Tone number for tonal languages")
    syllables: list[str] = Field(default_factory=list, description="Syllable breakdown")
    phonetic: Optional[str] = Field(None, description="Additional phonetic detail")


class LinguisticMetadata(BaseModel):
    """Grammatical metadata attached to a word."""

    model_config = ConfigDict(extra="allow")

    part_of_speech: str = Field(default="", description="Part of speech tag")
    usage: Optional[str] = None
    etymology: Optional[str] = None
    examples: list[str] = Field(default_factory=list)
    frequency: Optional[str] = Field(None, description="high / medium / low")
    formality: Optional[str] = Field(None, description="formal / neutral / informal")

    def has_field(self, name: str) -> bool:
        """True when ``name`` is set to a non-empty value."""
        value = getattr(self, name, None)
        if value is None and self.model_extra:
            value = self.model_extra.get(name)
        return value not in (None, "", [])


class DocumentMetadata(BaseModel):
    """Descriptive metadata for a whole document."""

    title: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None


# ============================================================================
# Nodes
# ============================================================================

class GlossaNode(BaseModel):
    """Base for every node variant."""

    extras: dict[str, Any] = Field(
        default_factory=dict,
        description="Schema-less annotation map written by extensions",
    )

    @property
    def node_type(self) -> NodeType:
        return NodeType(getattr(self, "type"))


class TextNode(GlossaNode):
    """Leaf holding the literal text of a word."""

    type: Literal["TextNode"] = "TextNode"
    value: str


class PunctuationNode(GlossaNode):
    type: Literal["PunctuationNode"] = "PunctuationNode"
    value: str


class SymbolNode(GlossaNode):
    type: Literal["SymbolNode"] = "SymbolNode"
    value: str


class WhiteSpaceNode(GlossaNode):
    type: Literal["WhiteSpaceNode"] = "WhiteSpaceNode"
    value: str = " "


class SourceNode(GlossaNode):
    """Embedded source reference (URL, citation, markup passthrough)."""

    type: Literal["SourceNode"] = "SourceNode"
    value: str


class WordNode(GlossaNode):
    """
    A word. Its text lives in a ``TextNode`` child.

    ``transcription`` maps a scheme name (``"ipa"``, ``"rtgs"``...) to
    the word's rendering under that scheme.
    """

    type: Literal["WordNode"] = "WordNode"
    children: list[Node] = Field(default_factory=list)
    lang: Optional[str] = Field(None, description="BCP-47 language tag")
    script: Optional[str] = Field(None, description="Script system (latin, thai...)")
    level: Optional[str] = Field(None, description="Linguistic level of the segment")
    transcription: dict[str, TranscriptionInfo] = Field(default_factory=dict)
    metadata: Optional[LinguisticMetadata] = None


class SentenceNode(GlossaNode):
    type: Literal["SentenceNode"] = "SentenceNode"
    children: list[Node] = Field(default_factory=list)
    lang: Optional[str] = None
    script: Optional[str] = None
    original_text: str = Field(default="", description="Sentence text as written")
    transcription: dict[str, TranscriptionInfo] = Field(default_factory=dict)


class ParagraphNode(GlossaNode):
    type: Literal["ParagraphNode"] = "ParagraphNode"
    children: list[Node] = Field(default_factory=list)
    lang: Optional[str] = None
    script: Optional[str] = None


class RootNode(GlossaNode):
    """Document root."""

    type: Literal["RootNode"] = "RootNode"
    children: list[Node] = Field(default_factory=list)
    lang: Optional[str] = None
    script: Optional[str] = None
    metadata: Optional[DocumentMetadata] = None


Node = Annotated[
    Union[
        RootNode,
        ParagraphNode,
        SentenceNode,
        WordNode,
        TextNode,
        PunctuationNode,
        SymbolNode,
        WhiteSpaceNode,
        SourceNode,
    ],
    Field(discriminator="type"),
]

WordNode.model_rebuild()
SentenceNode.model_rebuild()
ParagraphNode.model_rebuild()
RootNode.model_rebuild()


NODE_CLASSES: dict[NodeType, type[GlossaNode]] = {
    NodeType.ROOT: RootNode,
    NodeType.PARAGRAPH: ParagraphNode,
    NodeType.SENTENCE: SentenceNode,
    NodeType.WORD: WordNode,
    NodeType.TEXT: TextNode,
    NodeType.PUNCTUATION: PunctuationNode,
    NodeType.SYMBOL: SymbolNode,
    NodeType.WHITESPACE: WhiteSpaceNode,
    NodeType.SOURCE: SourceNode,
}
