"""
Tree — Node models for annotated linguistic documents.

The tree is the only thing extensions touch. Everything else
(report, registry, presets) describes how they touched it.
"""

from glossa.tree.enums import CONTAINER_TYPES, NodeType, PronunciationContext
from glossa.tree.nodes import (
    create_document,
    create_paragraph_node,
    create_punctuation_node,
    create_sentence_from_words,
    create_sentence_node,
    create_symbol_node,
    create_text_node,
    create_whitespace_node,
    create_word_node,
    document_from_text,
    document_from_words,
)
from glossa.tree.schema import (
    NODE_CLASSES,
    TREE_VERSION,
    DocumentMetadata,
    GlossaNode,
    LinguisticMetadata,
    Node,
    ParagraphNode,
    PronunciationVariant,
    PunctuationNode,
    RootNode,
    SentenceNode,
    SourceNode,
    SymbolNode,
    TextNode,
    TranscriptionInfo,
    WhiteSpaceNode,
    WordNode,
)

__all__ = [
    # Enums
    "NodeType",
    "PronunciationContext",
    "CONTAINER_TYPES",
    # Models
    "GlossaNode",
    "Node",
    "RootNode",
    "ParagraphNode",
    "SentenceNode",
    "WordNode",
    "TextNode",
    "PunctuationNode",
    "SymbolNode",
    "WhiteSpaceNode",
    "SourceNode",
    "TranscriptionInfo",
    "PronunciationVariant",
    "LinguisticMetadata",
    "DocumentMetadata",
    "NODE_CLASSES",
    "TREE_VERSION",
    # Factories
    "create_text_node",
    "create_word_node",
    "create_punctuation_node",
    "create_whitespace_node",
    "create_symbol_node",
    "create_sentence_node",
    "create_sentence_from_words",
    "create_paragraph_node",
    "create_document",
    "document_from_words",
    "document_from_text",
]
