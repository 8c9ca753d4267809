"""HybridStrategy: structural distance with dynamic-fragment masking.

Before comparing, the subtrees anchored by fragments already flagged dynamic
in either state are collapsed to their root element, so content known to
change between revisits does not count.  Anchors are matched across the two
documents by skeleton XPath.

``config.hybrid_policy`` picks the equality criterion:

- DISTANCE:         edit distance <= threshold;
- ALL_HIDDEN:       every changed node on both sides is hidden;
- VISIBLE_DISTANCE: edit distance minus hidden changed nodes <= threshold.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagestate.algorithm.config import HybridPolicy
from pagestate.strategies.base import StrategyKind, require_document
from pagestate.strategies.structural import StructuralStrategy
from pagestate.tree.nodes import skeleton_xpath

if TYPE_CHECKING:
    from pagestate.algorithm.extractor import Collapse
    from pagestate.state import StateVertex
    from pagestate.tree.nodes import Node

__all__ = ["HybridStrategy", "dynamic_xpaths"]


def dynamic_xpaths(state: StateVertex) -> set[str]:
    """Skeleton XPaths of the anchors of the state's dynamic fragments."""
    tree = state.fragment_tree
    if tree is None:
        return set()
    paths: set[str] = set()
    for fragment in tree:
        if not fragment.dynamic:
            continue
        anchor = fragment.parent_node if fragment.is_anchored else fragment.lca
        if anchor is not None:
            paths.add(skeleton_xpath(anchor))
    return paths


class HybridStrategy(StructuralStrategy):
    """Structural comparison aware of dynamic fragments."""

    kind = StrategyKind.HYBRID

    def distance(self, a: StateVertex, b: StateVertex) -> float:
        """Masked edit distance; the visible distance under VISIBLE_DISTANCE."""
        doc1, doc2 = require_document(a), require_document(b)
        collapse = self._mask(a, b)
        if self.config.hybrid_policy is HybridPolicy.VISIBLE_DISTANCE:
            return self.diff.visible_distance(doc1, doc2, collapse=collapse)
        return self.diff.distance(doc1, doc2, collapse)

    def equals(self, a: StateVertex, b: StateVertex) -> bool:
        if self.config.fast_compare and self._sizes_differ(a, b):
            return False
        if self.config.hybrid_policy is HybridPolicy.ALL_HIDDEN:
            return self.diff.all_changes_hidden(
                require_document(a), require_document(b), collapse=self._mask(a, b)
            )
        return self.distance(a, b) <= self.config.threshold

    def _mask(self, a: StateVertex, b: StateVertex) -> Collapse | None:
        if not self.config.mask_dynamic_fragments:
            return None
        paths = dynamic_xpaths(a) | dynamic_xpaths(b)
        if not paths:
            return None

        def collapse(node: Node) -> bool:
            return skeleton_xpath(node) in paths

        return collapse
