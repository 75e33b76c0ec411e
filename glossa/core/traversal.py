"""
Traversal — Generic walks over the tree.

Walks are pre-order and depth-first. A node's path is the tuple of
child indices leading to it from the root; the root's path is ().
"""

from typing import Callable, Iterator, Optional, Union

from glossa.tree.enums import NodeType
from glossa.tree.schema import GlossaNode, TextNode, WordNode

NodePath = tuple[int, ...]
WalkCallback = Callable[[GlossaNode, NodePath, Optional[GlossaNode]], None]


def _children(node: GlossaNode) -> list:
    return getattr(node, "children", None) or []


def walk(tree: GlossaNode, callback: WalkCallback) -> None:
    """
    Invoke ``callback(node, path, parent)`` for every node.

    The node sequence is collected before any callback runs, so a
    callback that touches children does not change which nodes are
    visited in this walk.
    """
    for node, path, parent in list(_iter_with_parent(tree)):
        callback(node, path, parent)


def iter_nodes(
    tree: GlossaNode,
    node_type: Union[NodeType, str, None] = None,
) -> Iterator[tuple[GlossaNode, NodePath]]:
    """Yield ``(node, path)`` pairs, optionally filtered by tag."""
    wanted = NodeType.from_tag(node_type) if node_type is not None else None
    if node_type is not None and wanted is None:
        raise ValueError(f"Unknown node tag: {node_type!r}")
    for node, path, _ in _iter_with_parent(tree):
        if wanted is None or node.node_type == wanted:
            yield node, path


def _iter_with_parent(tree: GlossaNode) -> Iterator[tuple[GlossaNode, NodePath, Optional[GlossaNode]]]:
    # Explicit stack: deep documents should not hit the recursion limit
    stack: list[tuple[GlossaNode, NodePath, Optional[GlossaNode]]] = [(tree, (), None)]
    while stack:
        node, path, parent = stack.pop()
        yield node, path, parent
        children = _children(node)
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], path + (index,), node))


def find_all(tree: GlossaNode, node_type: Union[NodeType, str]) -> list[GlossaNode]:
    return [node for node, _ in iter_nodes(tree, node_type)]


def get_all_words(tree: GlossaNode) -> list[WordNode]:
    return find_all(tree, NodeType.WORD)


def contains_node_type(tree: GlossaNode, node_type: Union[NodeType, str]) -> bool:
    return next(iter_nodes(tree, node_type), None) is not None


def count_nodes(tree: GlossaNode) -> int:
    return sum(1 for _ in _iter_with_parent(tree))


def get_node(tree: GlossaNode, path: NodePath) -> GlossaNode:
    """Follow ``path`` from the root. Raises IndexError for a bad path."""
    node = tree
    for index in path:
        node = _children(node)[index]
    return node


def get_word_text(word: WordNode) -> str:
    """Concatenated value of the word's text children."""
    return "".join(child.value for child in word.children if isinstance(child, TextNode))


def format_path(path: Optional[NodePath]) -> Optional[str]:
    """Render a path for reports: ``()`` -> ``"/"``, ``(0, 2)`` -> ``"/0/2"``."""
    if path is None:
        return None
    return "/" + "/".join(str(i) for i in path)
