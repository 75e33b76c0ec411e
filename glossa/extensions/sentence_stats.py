"""
Sentence Statistics — Per-sentence counts, written to the sentence's extras.
"""

from glossa.core.contracts import Extension
from glossa.core.traversal import get_word_text
from glossa.tree.enums import NodeType
from glossa.tree.schema import PunctuationNode, SentenceNode, WordNode

EXTENSION_ID = "sentence-statistics"


def sentence_statistics(sentence: SentenceNode) -> dict:
    words = [get_word_text(c) for c in sentence.children if isinstance(c, WordNode)]
    punctuation = sum(1 for c in sentence.children if isinstance(c, PunctuationNode))
    letters = sum(len(w) for w in words)
    return {
        "word_count": len(words),
        "character_count": letters,
        "punctuation_count": punctuation,
        "average_word_length": round(letters / len(words), 2) if words else 0.0,
        "longest_word": max(words, key=len) if words else None,
    }


def _visit_sentence(sentence: SentenceNode) -> None:
    sentence.extras["statistics"] = sentence_statistics(sentence)


def create_sentence_stats_extension() -> Extension:
    return Extension(
        id=EXTENSION_ID,
        name="Sentence Statistics",
        description="Counts words and punctuation per sentence",
        requires={"nodes": [NodeType.SENTENCE]},
        provides={"extras": ["statistics"]},
        visit={NodeType.SENTENCE: _visit_sentence},
    )
