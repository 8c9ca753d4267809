"""DynamicFragmentDetector: mark fragments whose content differs from a near-duplicate.

Given the current state and a reference state judged equivalent to it, the
tree-1 side of ``DiffExtractor.diff_nodes`` lists the current nodes whose
tag or text changed.  Each such node is flagged dynamic and its closest
fragment is flagged dynamic and reported once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagestate.algorithm.diff import DiffExtractor
from pagestate.tree.nodes import skeleton_xpath

if TYPE_CHECKING:
    from pagestate.fragments.fragment import Fragment
    from pagestate.state import StateVertex

logger = logging.getLogger(__name__)

__all__ = ["DynamicFragmentDetector"]


class DynamicFragmentDetector:
    """Finds the dynamic fragments of a state.

    Args:
        diff_extractor: Extractor used to list changed nodes.  Defaults to a
            structure+text ``DiffExtractor``.
    """

    def __init__(self, diff_extractor: DiffExtractor | None = None) -> None:
        self.diff_extractor = (
            diff_extractor if diff_extractor is not None else DiffExtractor()
        )

    def assign(self, current: StateVertex, reference: StateVertex) -> list[Fragment]:
        """Flag and return the fragments of ``current`` that hold changed nodes.

        A reference of another strategy kind yields an empty list.  Failures
        are logged and the fragments found so far are returned.
        """
        if reference.kind != current.kind:
            return []
        dynamic: list[Fragment] = []
        try:
            doc1 = current.document
            doc2 = reference.document
            if doc1 is None or doc2 is None:
                logger.error(
                    "Cannot assign dynamic fragments for %s: no document",
                    current.name,
                )
                return dynamic
            diff_nodes = self.diff_extractor.diff_nodes(doc1, doc2)
            logger.debug("No of diff nodes found %d", len(diff_nodes))
            for node in diff_nodes:
                if node is None:
                    logger.error("Skipping empty diff node in %s", current.name)
                    continue
                node.dynamic = True
                fragment = current.closest_fragment(node)
                if fragment is None:
                    logger.error(
                        "No fragment found for diff node %s in %s",
                        skeleton_xpath(node),
                        current.name,
                    )
                    continue
                if not any(f is fragment for f in dynamic):
                    fragment.dynamic = True
                    dynamic.append(fragment)
            logger.debug("No of dynamic fragments found %d", len(dynamic))
        except Exception:
            logger.error(
                "Error assigning dynamic fragments for %s", current.name, exc_info=True
            )
        return dynamic
