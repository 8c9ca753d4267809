"""FragmentBuilder: reconcile a visual segmentation with the DOM tree.

Pipeline (``build``):

1. One ``Fragment`` per ``Rectangle``; visual edges follow the rectangle
   parent ids (``-1`` marks the root).
2. ``set_parent_node``: anchor the root at the LCA of its nested blocks and,
   wherever a fragment has several children, anchor each child at its
   highest differentiator.  A child with no differentiator but exactly one
   nested block is anchored on that block.
3. ``generate_dom_fragments``: walk the DOM top-down from the root anchor,
   building the DOM hierarchy.  Fragments already anchored in the walked
   subtree are attached below the current DOM parent; a subtree that is
   exactly the LCA of several nested blocks becomes a new fragment.
4. ``clean_fragments``: useful fragments that still have no anchor (and no
   useful anchored child) are split along the DOM children of their LCA.
5. Candidate elements are attributed through ``FragmentTree.add_candidates``.

The builder works on a private ``FragmentTree``; nothing is shared until
``build`` returns.  A failure while processing one fragment is logged and the
remaining fragments are still processed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from pagestate.fragments.fragment import UNASSIGNED_ID, Fragment, FragmentTree
from pagestate.fragments.usefulness import UsefulnessPolicy
from pagestate.tree.nodes import (
    Document,
    Node,
    contains,
    lowest_common_ancestor,
    skeleton_xpath,
)

if TYPE_CHECKING:
    from pagestate.geometry import Rect, Rectangle
    from pagestate.protocols import Driver, UsefulnessPredicate
    from pagestate.state import CandidateElement

logger = logging.getLogger(__name__)

__all__ = ["FragmentBuilder", "is_a_differentiator"]


def is_a_differentiator(sibling_lcas: Iterable[Node | None], candidate: Node) -> bool:
    """True when ``candidate`` contains none of the sibling LCAs.

    Containment is ancestor-or-self, so a candidate that is itself one of the
    sibling LCAs is never a differentiator.
    """
    return not any(contains(candidate, lca) for lca in sibling_lcas)


class FragmentBuilder:
    """Builds the fragment tree of one state.

    Args:
        state_name:        Name of the owning state (used in logs and fragments).
        document:          The state's cleaned document.
        usefulness:        Predicate deciding whether a fragment is worth
            tracking.  Defaults to ``UsefulnessPolicy()``.
        driver:            Optional browser driver used to re-measure element
            geometry; the node's own ``rect`` is used otherwise.
        divide_unanchored: Run the ``clean_fragments`` subdivision pass.
    """

    def __init__(
        self,
        state_name: str,
        document: Document,
        usefulness: UsefulnessPredicate | None = None,
        driver: Driver | None = None,
        divide_unanchored: bool = True,
    ) -> None:
        self.state_name = state_name
        self.document = document
        self.usefulness: UsefulnessPredicate = (
            usefulness if usefulness is not None else UsefulnessPolicy()
        )
        self.driver = driver
        self.divide_unanchored = divide_unanchored

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(
        self,
        rectangles: list[Rectangle] | None,
        candidates: list[CandidateElement] | None = None,
    ) -> FragmentTree | None:
        """Run the whole pipeline; None when ``rectangles`` is None."""
        if rectangles is None:
            return None

        tree = FragmentTree()
        self._create_fragments(tree, rectangles)
        root = tree.root
        if root is None:
            logger.error("No root rectangle for state %s", self.state_name)
            return tree

        try:
            self.set_parent_node(tree, root)
        except Exception:
            logger.error(
                "Could not set parent node for root fragment in %s",
                self.state_name,
                exc_info=True,
            )

        try:
            self.generate_dom_fragments(tree)
        except Exception:
            logger.error(
                "Could not generate dom fragments for %s",
                self.state_name,
                exc_info=True,
            )

        if self.divide_unanchored:
            self.clean_fragments(tree)

        if candidates:
            tree.add_candidates(candidates)
        return tree

    def set_parent_node(self, tree: FragmentTree, fragment: Fragment) -> None:
        """Anchor the children of ``fragment`` (and the root itself) recursively."""
        if fragment is tree.root:
            tree.set_anchor(fragment, fragment.lca)

        children = tree.children(fragment)
        if len(children) == 1:
            self.set_parent_node(tree, children[0])
            return

        for child in children:
            try:
                anchor = self.highest_differentiator(child, children)
                if anchor is None and len(child.nested_blocks) == 1:
                    anchor = child.nested_blocks[0]
                    logger.warning(
                        "No differentiator for single node %s of %d in %s",
                        skeleton_xpath(anchor),
                        child.id,
                        self.state_name,
                    )
                tree.set_anchor(child, anchor)
                self.set_parent_node(tree, child)
            except Exception:
                logger.error(
                    "Could not anchor fragment %d in %s",
                    child.id,
                    self.state_name,
                    exc_info=True,
                )

    def highest_differentiator(
        self, fragment: Fragment, siblings: list[Fragment]
    ) -> Node | None:
        """LCA of the fragment's nested blocks if it differentiates it from siblings."""
        lca = fragment.lca
        sibling_lcas = self.sibling_lcas(siblings, fragment)
        if lca is None or lowest_common_ancestor(sibling_lcas) is None:
            return None
        if is_a_differentiator(sibling_lcas, lca):
            return lca
        return None

    @staticmethod
    def sibling_lcas(siblings: list[Fragment], exclude: Fragment) -> list[Node | None]:
        return [s.lca for s in siblings if s is not exclude]

    def generate_dom_fragments(self, tree: FragmentTree) -> list[Fragment]:
        """Build the DOM hierarchy; return the fragments created on the way."""
        root = tree.root
        if root is None:
            return []
        start = root.parent_node if root.parent_node is not None else self.document.root
        created: list[Fragment] = []
        self._dom_fragments(tree, start, root.nested_blocks, root, created)
        return created

    def clean_fragments(self, tree: FragmentTree) -> list[Fragment]:
        """Split useful unanchored fragments along the DOM; return the new ones."""
        added: list[Fragment] = []
        for fragment in list(tree):
            if any(c.is_anchored and c.useful for c in tree.children(fragment)):
                continue
            if fragment.is_anchored or not fragment.useful:
                continue
            try:
                added.extend(self.divide_fragment_by_dom(tree, fragment))
            except Exception:
                logger.error(
                    "Could not divide fragment %d in %s",
                    fragment.id,
                    self.state_name,
                    exc_info=True,
                )
        return added

    def divide_fragment_by_dom(
        self, tree: FragmentTree, fragment: Fragment
    ) -> list[Fragment]:
        """Register DOM-anchored children of an unanchored fragment."""
        if fragment.is_anchored:
            logger.warning("Cannot divide fragment %d: already anchored", fragment.id)
            return []
        parent = tree.parent(fragment)
        parent_box = fragment.lca
        if parent is None or parent_box is None:
            return []

        sibling_lcas = self.sibling_lcas(tree.children(parent), fragment)
        found = self._differentiating_fragments(
            tree, fragment.nested_blocks, sibling_lcas, parent_box
        )
        for new in found:
            new.id = tree.next_fragment_id()
            new.useful = True
            tree.add(new)
            tree.link_visual(new, fragment)
            logger.info(
                "Added fragment %d to %d using DOM division", new.id, fragment.id
            )
        fragment.adjust_rect([f.rect for f in found if f.rect is not None])
        return found

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _create_fragments(
        self, tree: FragmentTree, rectangles: list[Rectangle]
    ) -> None:
        parent_ids: dict[int, int] = {}
        for rectangle in rectangles:
            fragment = Fragment(
                rectangle.id,
                self.state_name,
                rect=rectangle.rect,
                nested_blocks=list(rectangle.nested_blocks),
            )
            fragment.useful = self.usefulness(fragment)
            try:
                tree.add(fragment)
            except ValueError:
                logger.error(
                    "Skipping rectangle %d in %s",
                    rectangle.id,
                    self.state_name,
                    exc_info=True,
                )
                continue
            parent_ids[rectangle.id] = rectangle.parent_id

        for fragment_id, parent_id in parent_ids.items():
            fragment = tree.fragments[fragment_id]
            if parent_id < 0:
                if tree.root_id is None:
                    tree.set_root(fragment)
                else:
                    logger.warning(
                        "Extra root rectangle %d in %s ignored",
                        fragment_id,
                        self.state_name,
                    )
                continue
            parent = tree.get(parent_id)
            if parent is None:
                logger.error(
                    "Rectangle %d refers to unknown parent %d in %s",
                    fragment_id,
                    parent_id,
                    self.state_name,
                )
                continue
            tree.link_visual(fragment, parent)

    def _dom_fragments(
        self,
        tree: FragmentTree,
        node: Node,
        blocks: list[Node],
        parent: Fragment,
        created: list[Fragment],
    ) -> None:
        existing = tree.anchored_fragment(node)
        if existing is not None:
            if existing is not parent:
                visual_parent = tree.parent(existing)
                if visual_parent is not None and visual_parent is not parent:
                    logger.debug(
                        "Hierarchy mismatch for fragment %d: dom parent %d",
                        existing.id,
                        parent.id,
                    )
                tree.link_dom(existing, parent)
                parent = existing
            logger.debug(
                "%s already anchors fragment %d", skeleton_xpath(node), existing.id
            )
            if len(blocks) <= 1 or not existing.useful:
                return
        else:
            lca = lowest_common_ancestor(blocks)
            if lca is node and len(blocks) > 1:
                fragment = self._create_dom_fragment(tree, node, blocks, parent)
                if fragment is not None:
                    created.append(fragment)
                    parent = fragment
            elif lca is not None and lca is not node and contains(node, lca):
                self._dom_fragments(tree, lca, blocks, parent, created)
                return

        for child in node.element_children():
            try:
                child_fragment = tree.anchored_fragment(child)
                if child_fragment is not None:
                    child_blocks = child_fragment.nested_blocks
                else:
                    child_blocks = [b for b in blocks if contains(child, b)]
                if child_blocks or child_fragment is not None:
                    self._dom_fragments(tree, child, child_blocks, parent, created)
            except Exception:
                logger.error(
                    "Could not generate dom fragments below %s in %s",
                    skeleton_xpath(child),
                    self.state_name,
                    exc_info=True,
                )

    def _create_dom_fragment(
        self,
        tree: FragmentTree,
        node: Node,
        blocks: list[Node],
        parent: Fragment,
    ) -> Fragment | None:
        fragment = Fragment(
            UNASSIGNED_ID, self.state_name, rect=self._measure(node), parent_node=node
        )
        if not self.usefulness(fragment):
            return None
        fragment.id = tree.next_fragment_id()
        fragment.nested_blocks = list(blocks)
        fragment.useful = True
        tree.add(fragment)
        tree.link_visual(fragment, parent)
        tree.link_dom(fragment, parent)
        logger.info(
            "Created dom fragment %d, child of %d, for %s",
            fragment.id,
            parent.id,
            skeleton_xpath(node),
        )
        return fragment

    def _differentiating_fragments(
        self,
        tree: FragmentTree,
        blocks: list[Node],
        sibling_lcas: list[Node | None],
        parent_box: Node,
    ) -> list[Fragment]:
        found: list[Fragment] = []
        for child in parent_box.element_children():
            contained = [b for b in blocks if contains(child, b)]
            if not contained or tree.anchored_fragment(child) is not None:
                continue
            fragment = Fragment(
                UNASSIGNED_ID,
                self.state_name,
                rect=self._measure(child),
                parent_node=child,
            )
            if not self.usefulness(fragment):
                continue
            if is_a_differentiator(sibling_lcas, child):
                fragment.nested_blocks = contained
                found.append(fragment)
            else:
                found.extend(
                    self._differentiating_fragments(
                        tree, blocks, sibling_lcas, child
                    )
                )
        return found

    def _measure(self, node: Node) -> Rect | None:
        if self.driver is None:
            return node.rect
        try:
            rect = self.driver.measure_element_rect(node)
        except Exception:
            logger.error(
                "Could not measure %s", skeleton_xpath(node), exc_info=True
            )
            return node.rect
        return rect if rect is not None else node.rect
