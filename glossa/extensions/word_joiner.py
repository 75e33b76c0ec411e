"""
Compound Word Joiner — Restructures hyphenated compounds into one word.

    WordNode("well") PunctuationNode("-") WordNode("known")
        -> WordNode("well-known")

Only directly adjacent parts are joined; whitespace around the joiner
means it is a dash, not a compound. Runs as a transform and returns a
new tree, so the caller's tree is left untouched.
"""

from typing import Optional

from glossa.core.contracts import Extension
from glossa.core.logging import get_extension_logger
from glossa.core.merge import deep_merge
from glossa.core.traversal import get_word_text, iter_nodes
from glossa.tree.enums import NodeType
from glossa.tree.nodes import create_word_node
from glossa.tree.schema import PunctuationNode, RootNode, SentenceNode, WordNode

EXTENSION_ID = "compound-joiner"

DEFAULT_JOINERS = ("-", "‐")

log = get_extension_logger(EXTENSION_ID)


def join_compounds(sentence: SentenceNode, joiners: tuple[str, ...] = DEFAULT_JOINERS) -> int:
    """Join compounds in one sentence in place. Returns the number of joins."""
    children = list(sentence.children)
    result: list = []
    joins = 0
    i = 0
    while i < len(children):
        node = children[i]
        if not isinstance(node, WordNode):
            result.append(node)
            i += 1
            continue

        parts = [node]
        j = i + 1
        while (
            j + 1 < len(children)
            and isinstance(children[j], PunctuationNode)
            and children[j].value in joiners
            and isinstance(children[j + 1], WordNode)
        ):
            parts.append(children[j])
            parts.append(children[j + 1])
            j += 2

        if len(parts) == 1:
            result.append(node)
        else:
            result.append(_merge_parts(parts))
            joins += 1
        i = j

    sentence.children = result
    return joins


def _merge_parts(parts: list) -> WordNode:
    first: WordNode = parts[0]
    text = "".join(
        get_word_text(p) if isinstance(p, WordNode) else p.value
        for p in parts
    )
    extras: dict = {}
    for part in parts:
        if isinstance(part, WordNode):
            extras = deep_merge(extras, part.extras)
    return create_word_node(
        text,
        lang=first.lang,
        script=first.script,
        extras=extras,
    )


def create_word_joiner_extension(joiners: Optional[tuple[str, ...]] = None) -> Extension:
    """
    Create the compound joiner.

    Args:
        joiners: Punctuation values that glue words (default: hyphens)
    """
    glue = tuple(joiners) if joiners else DEFAULT_JOINERS

    def transform(tree: RootNode) -> RootNode:
        new_tree = tree.model_copy(deep=True)
        joins = 0
        for sentence, _ in list(iter_nodes(new_tree, NodeType.SENTENCE)):
            joins += join_compounds(sentence, glue)
        log.verbose("compounds_joined", count=joins)
        return new_tree

    return Extension(
        id=EXTENSION_ID,
        name="Compound Word Joiner",
        description="Joins hyphenated compounds into single word nodes",
        requires={"nodes": [NodeType.SENTENCE]},
        transform=transform,
        options={"joiners": glue},
    )
