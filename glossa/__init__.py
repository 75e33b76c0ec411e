"""
glossa — Extension orchestration for annotated linguistic trees.

Runs independently-authored extensions over a document tree in
dependency order, merging their annotations and reporting what
applied, what was skipped, and why.

Extensions annotate the tree. The engine never interprets it.
"""

__version__ = "0.1.0"
__tree_version__ = "0.1.0"
