"""DiffExtractor: turns an edit mapping into inserted/removed/changed nodes.

Given the post-order node lists of two documents and the mapping from
``EditDistanceEngine``, a node is reported when it is

- unmatched (``(i, 0)`` or ``(0, j)``: removed from / inserted into tree 1), or
- matched to a node whose label differs case-insensitively.

``diff_nodes`` is the narrower variant used for dynamic-fragment marking: it
ignores pure inserts/deletes, additionally flags text nodes whose labels match
but whose trimmed text does not, and returns the tree-1 side only.

Doc1 is the newer snapshot, doc2 the older one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pagestate.algorithm.costs import CostModel
from pagestate.algorithm.extractor import Collapse, TreeExtractor
from pagestate.algorithm.ted import EditDistanceEngine, Mapping
from pagestate.tree.nodes import Document, Node
from pagestate.tree.visibility import is_displayed

logger = logging.getLogger(__name__)

__all__ = ["DiffExtractor", "classify_changes"]


def _labels_differ(label_a: str, label_b: str) -> bool:
    return label_a.casefold() != label_b.casefold()


def classify_changes(
    post_order_1: list[Node],
    post_order_2: list[Node],
    mapping: Mapping,
    label: Callable[[Node], str],
) -> tuple[list[Node], list[Node]]:
    """Split a mapping into the changed nodes of each tree.

    Args:
        post_order_1: Post-order nodes of tree 1 (index ``k`` = position ``k + 1``).
        post_order_2: Post-order nodes of tree 2.
        mapping:      1-based position pairs, 0 meaning "no counterpart".
        label:        Node string representation used to detect relabels.

    Returns:
        ``(doc1_nodes, doc2_nodes)`` in mapping order.
    """
    doc1_nodes: list[Node] = []
    doc2_nodes: list[Node] = []
    for pos1, pos2 in mapping:
        try:
            if pos2 == 0:
                doc1_nodes.append(post_order_1[pos1 - 1])
            elif pos1 == 0:
                doc2_nodes.append(post_order_2[pos2 - 1])
            else:
                new_node = post_order_1[pos1 - 1]
                old_node = post_order_2[pos2 - 1]
                if _labels_differ(label(new_node), label(old_node)):
                    doc1_nodes.append(new_node)
                    doc2_nodes.append(old_node)
        except IndexError:
            logger.error(
                "Mapping pair (%d, %d) is outside the node lists", pos1, pos2
            )
    return doc1_nodes, doc2_nodes


class DiffExtractor:
    """Computes node-level differences between two documents.

    Args:
        extractor:  TreeExtractor used for both documents.  Defaults to a
            structure+text extractor without visual data.
        cost_model: Optional cost model forwarded to the edit-distance engine.
    """

    def __init__(
        self,
        extractor: TreeExtractor | None = None,
        cost_model: CostModel | None = None,
    ) -> None:
        self.extractor = extractor if extractor is not None else TreeExtractor()
        self._cost_model = cost_model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def distance(
        self, doc1: Document, doc2: Document, collapse: Collapse | None = None
    ) -> float:
        """Tree edit distance between the bodies of two documents."""
        tree1 = self.extractor.labeled_tree(doc1.body, collapse)
        tree2 = self.extractor.labeled_tree(doc2.body, collapse)
        engine = EditDistanceEngine(self._cost_model)
        return engine.compute_edit_distance(tree1, tree2)

    def align(
        self, doc1: Document, doc2: Document, collapse: Collapse | None = None
    ) -> tuple[float, Mapping, list[Node], list[Node]]:
        """Return ``(distance, mapping, post_order_1, post_order_2)``."""
        post1, tree1 = self.extractor.extract(doc1.body, collapse)
        post2, tree2 = self.extractor.extract(doc2.body, collapse)
        engine = EditDistanceEngine(self._cost_model)
        distance, mapping = engine.distance_and_mapping(tree1, tree2)
        return distance, mapping, post1, post2

    def changed_nodes(
        self, doc1: Document, doc2: Document, collapse: Collapse | None = None
    ) -> tuple[list[Node], list[Node]]:
        """Inserted, removed and relabeled nodes as ``(doc1_nodes, doc2_nodes)``."""
        _, mapping, post1, post2 = self.align(doc1, doc2, collapse)
        return classify_changes(post1, post2, mapping, self.extractor.node_label)

    def diff_nodes(self, doc1: Document, doc2: Document) -> list[Node]:
        """Tree-1 nodes matched to a node with a different label or text."""
        _, mapping, post1, post2 = self.align(doc1, doc2)
        label = self.extractor.node_label
        doc1_nodes: list[Node] = []
        for pos1, pos2 in mapping:
            if pos1 == 0 or pos2 == 0:
                continue
            try:
                new_node = post1[pos1 - 1]
                old_node = post2[pos2 - 1]
            except IndexError:
                logger.error(
                    "Mapping pair (%d, %d) is outside the node lists", pos1, pos2
                )
                continue
            new_label = label(new_node)
            old_label = label(old_node)
            if _labels_differ(new_label, old_label):
                doc1_nodes.append(new_node)
            elif (
                new_node.is_text
                and old_node.is_text
                and _labels_differ(new_node.text.strip(), old_node.text.strip())
            ):
                doc1_nodes.append(new_node)
        return doc1_nodes

    def all_changes_hidden(
        self,
        doc1: Document,
        doc2: Document,
        displayed: Callable[[Node], bool] = is_displayed,
        collapse: Collapse | None = None,
    ) -> bool:
        """True when every changed node on both sides is not displayed."""
        doc1_nodes, doc2_nodes = self.changed_nodes(doc1, doc2, collapse)
        return not any(displayed(node) for node in (*doc1_nodes, *doc2_nodes))

    def visible_distance(
        self,
        doc1: Document,
        doc2: Document,
        displayed: Callable[[Node], bool] = is_displayed,
        collapse: Collapse | None = None,
    ) -> float:
        """Edit distance minus one for every changed node that is hidden."""
        distance, mapping, post1, post2 = self.align(doc1, doc2, collapse)
        doc1_nodes, doc2_nodes = classify_changes(
            post1, post2, mapping, self.extractor.node_label
        )
        hidden = sum(1 for node in (*doc1_nodes, *doc2_nodes) if not displayed(node))
        return max(0.0, distance - hidden)
