"""Public API functions for pagestate.

This module provides the four user-facing functions: compare, tree_distance,
is_equivalent and diff_nodes.  Each call creates a fresh TreeComparator to
guarantee zero global state between calls.
"""

from __future__ import annotations

from pagestate.algorithm.config import EquivalenceConfig
from pagestate.comparator import DocumentLike, TreeComparator
from pagestate.result import ComparisonResult
from pagestate.tree.nodes import Node

__all__ = ["compare", "diff_nodes", "is_equivalent", "tree_distance"]


def compare(
    left: DocumentLike,
    right: DocumentLike,
    config: EquivalenceConfig | None = None,
) -> ComparisonResult:
    """Compare two documents and return a rich ComparisonResult.

    Args:
        left:   First document, as HTML or a parsed ``Document``.
        right:  Second document.
        config: Labeling options.  Defaults to ``EquivalenceConfig()`` when None.

    Returns:
        A ``ComparisonResult`` with distance, alignment, changed_left,
        changed_right and computation_time_ms populated.
    """
    return TreeComparator(config=config).compare(left, right)


def tree_distance(
    left: DocumentLike,
    right: DocumentLike,
    config: EquivalenceConfig | None = None,
) -> float:
    """Return the tree edit distance between two documents (0.0 when identical)."""
    return TreeComparator(config=config).tree_distance(left, right)


def is_equivalent(
    left: DocumentLike,
    right: DocumentLike,
    config: EquivalenceConfig | None = None,
) -> bool:
    """Return True when the edit distance is at most ``config.threshold``.

    With the default configuration (threshold 0.0) only structurally and
    textually identical bodies are equivalent.
    """
    return TreeComparator(config=config).is_equivalent(left, right)


def diff_nodes(
    left: DocumentLike,
    right: DocumentLike,
    config: EquivalenceConfig | None = None,
) -> list[Node]:
    """Return the nodes of ``left`` whose tag or text differs from ``right``."""
    return TreeComparator(config=config).diff_nodes(left, right)
