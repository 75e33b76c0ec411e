"""
Node factories — Convenience constructors for tree nodes.
"""

import re
from typing import Any, Optional

from glossa.tree.schema import (
    DocumentMetadata,
    LinguisticMetadata,
    ParagraphNode,
    PunctuationNode,
    RootNode,
    SentenceNode,
    SymbolNode,
    TextNode,
    TranscriptionInfo,
    WhiteSpaceNode,
    WordNode,
)

# Words, punctuation runs, whitespace runs, anything else
_TOKEN_PATTERN = re.compile(r"(\w+(?:['’]\w+)*)|([.,;:!?¿¡…\"'()\[\]«»“”-]+)|(\s+)|(\S)")
_SENTENCE_END = re.compile(r"(?<=[.!?…])\s+")


def create_text_node(value: str) -> TextNode:
    return TextNode(value=value)


def create_punctuation_node(value: str) -> PunctuationNode:
    return PunctuationNode(value=value)


def create_whitespace_node(value: str = " ") -> WhiteSpaceNode:
    return WhiteSpaceNode(value=value)


def create_symbol_node(value: str) -> SymbolNode:
    return SymbolNode(value=value)


def create_word_node(
    text: str,
    lang: Optional[str] = None,
    script: Optional[str] = None,
    transcription: Optional[dict[str, TranscriptionInfo]] = None,
    metadata: Optional[LinguisticMetadata] = None,
    extras: Optional[dict[str, Any]] = None,
) -> WordNode:
    """Create a word whose only child is a text node holding ``text``."""
    return WordNode(
        children=[create_text_node(text)],
        lang=lang,
        script=script,
        transcription=dict(transcription or {}),
        metadata=metadata,
        extras=dict(extras or {}),
    )


def create_sentence_node(
    children: list,
    lang: Optional[str] = None,
    script: Optional[str] = None,
    original_text: str = "",
) -> SentenceNode:
    return SentenceNode(
        children=list(children),
        lang=lang,
        script=script,
        original_text=original_text,
    )


def create_sentence_from_words(
    words: list[WordNode],
    lang: Optional[str] = None,
    script: Optional[str] = None,
    original_text: Optional[str] = None,
) -> SentenceNode:
    """
    Build a sentence from words, separated by single whitespace nodes.

    ``original_text`` defaults to the words joined by spaces.
    """
    children: list = []
    texts: list[str] = []
    for i, word in enumerate(words):
        if i > 0:
            children.append(create_whitespace_node())
        children.append(word)
        texts.append(_first_text(word))
    return create_sentence_node(
        children,
        lang=lang,
        script=script,
        original_text=original_text if original_text is not None else " ".join(texts),
    )


def create_paragraph_node(
    sentences: list[SentenceNode],
    lang: Optional[str] = None,
    script: Optional[str] = None,
) -> ParagraphNode:
    return ParagraphNode(children=list(sentences), lang=lang, script=script)


def create_document(
    paragraphs: list[ParagraphNode],
    lang: Optional[str] = None,
    script: Optional[str] = None,
    metadata: Optional[DocumentMetadata] = None,
) -> RootNode:
    return RootNode(children=list(paragraphs), lang=lang, script=script, metadata=metadata)


def document_from_words(
    words: list[str],
    lang: str = "en",
    script: str = "latin",
) -> RootNode:
    """One paragraph holding one sentence made of ``words``."""
    word_nodes = [create_word_node(w, lang=lang, script=script) for w in words]
    sentence = create_sentence_from_words(word_nodes, lang=lang, script=script)
    return create_document(
        [create_paragraph_node([sentence], lang=lang, script=script)],
        lang=lang,
        script=script,
    )


def document_from_text(text: str, lang: str = "en", script: str = "latin") -> RootNode:
    """
    Tokenize plain text into a tree.

    Paragraphs split on blank lines, sentences after terminal
    punctuation. Tokenization is whitespace/punctuation based and
    only suited to space-delimited scripts.
    """
    paragraphs = []
    for block in re.split(r"\n\s*\n", text.strip()):
        if not block.strip():
            continue
        sentences = []
        for raw_sentence in _SENTENCE_END.split(block.strip()):
            sentence_text = " ".join(raw_sentence.split())
            if not sentence_text:
                continue
            sentences.append(
                create_sentence_node(
                    _tokenize(sentence_text, lang, script),
                    lang=lang,
                    script=script,
                    original_text=sentence_text,
                )
            )
        paragraphs.append(create_paragraph_node(sentences, lang=lang, script=script))
    return create_document(paragraphs, lang=lang, script=script)


def _tokenize(text: str, lang: str, script: str) -> list:
    children: list = []
    for match in _TOKEN_PATTERN.finditer(text):
        word, punct, space, other = match.groups()
        if word:
            children.append(create_word_node(word, lang=lang, script=script))
        elif punct:
            children.append(create_punctuation_node(punct))
        elif space:
            children.append(create_whitespace_node(space))
        else:
            children.append(create_symbol_node(other))
    return children


def _first_text(word: WordNode) -> str:
    for child in word.children:
        if isinstance(child, TextNode):
            return child.value
    return ""
