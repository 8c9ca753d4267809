"""Fragment and FragmentTree: the dual visual/DOM fragment hierarchy.

A ``Fragment`` holds only its own data (geometry, nested blocks, anchor node,
flags, attributed candidates).  Hierarchy edges live in the owning
``FragmentTree`` arena as four index maps keyed by fragment id:

- ``visual_parent`` / ``visual_children``: mirrors the segmentation nesting
  plus fragments added by DOM subdivision;
- ``dom_parent`` / ``dom_children``: computed by walking the document tree.

Both hierarchies are rooted at the same fragment.  A third index maps anchor
nodes to the id of the fragment they anchor, which is how a DOM walk finds
"the fragment owning this subtree" in O(1).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pagestate.geometry import Rect
from pagestate.tree.nodes import Node, contains, lowest_common_ancestor, skeleton_xpath

if TYPE_CHECKING:
    from pagestate.state import CandidateElement

logger = logging.getLogger(__name__)

__all__ = ["UNASSIGNED_ID", "Fragment", "FragmentTree"]

UNASSIGNED_ID = -1


@dataclass(eq=False, slots=True)
class Fragment:
    """A reusable region of one state's page.

    Attributes:
        id:            Unique within the state; ``UNASSIGNED_ID`` until registered.
        state_name:    Name of the owning state.
        rect:          Pixel bounds, None when unknown.
        nested_blocks: DOM leaf nodes enclosed by the region.
        parent_node:   DOM node anchoring the fragment, None when unanchored.
        useful:        Result of the usefulness policy.
        dynamic:       Set once the fragment's content is known to vary.
        candidates:    Interactive elements attributed to the fragment.
    """

    id: int
    state_name: str
    rect: Rect | None = None
    nested_blocks: list[Node] = field(default_factory=list)
    parent_node: Node | None = field(default=None, repr=False)
    useful: bool = False
    dynamic: bool = False
    candidates: list[CandidateElement] = field(default_factory=list, repr=False)

    @property
    def is_anchored(self) -> bool:
        return self.parent_node is not None

    @property
    def lca(self) -> Node | None:
        """Lowest common ancestor of the nested blocks."""
        return lowest_common_ancestor(self.nested_blocks)

    def contains_node(self, node: Node | None) -> bool:
        """True when ``node`` lies inside the fragment.

        Anchored fragments own the whole subtree of their anchor; unanchored
        ones own the subtrees of their nested blocks.
        """
        if node is None:
            return False
        if self.parent_node is not None:
            return contains(self.parent_node, node)
        return any(contains(block, node) for block in self.nested_blocks)

    def contains_candidate(self, element: CandidateElement) -> bool:
        return self.contains_node(element.node)

    def add_candidate(self, element: CandidateElement) -> None:
        if not any(existing is element for existing in self.candidates):
            self.candidates.append(element)

    def adjust_rect(self, rects: list[Rect]) -> None:
        """Widen ``rect`` so it covers every box in ``rects``."""
        for rect in rects:
            self.rect = rect if self.rect is None else self.rect.union(rect)


class FragmentTree:
    """Arena of fragments keyed by id, with visual and DOM index maps.

    Built privately by ``FragmentBuilder`` and only published once complete;
    after publication the structure is read-only apart from the ``dynamic``
    flags and candidate lists.
    """

    def __init__(self) -> None:
        self.fragments: dict[int, Fragment] = {}
        self.root_id: int | None = None
        self.visual_parent: dict[int, int] = {}
        self.visual_children: dict[int, list[int]] = {}
        self.dom_parent: dict[int, int] = {}
        self.dom_children: dict[int, list[int]] = {}
        self.anchors: dict[Node, int] = {}

    def __len__(self) -> int:
        return len(self.fragments)

    def __iter__(self) -> Iterator[Fragment]:
        return iter(self.fragments.values())

    def __contains__(self, fragment_id: object) -> bool:
        return fragment_id in self.fragments

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(self, fragment: Fragment) -> Fragment:
        """Register ``fragment`` under its id.

        Raises:
            ValueError: If the id is unassigned or already taken.
        """
        if fragment.id < 0:
            msg = f"Fragment id must be >= 0 before registration, got {fragment.id}"
            raise ValueError(msg)
        if fragment.id in self.fragments:
            msg = f"Duplicate fragment id {fragment.id}"
            raise ValueError(msg)
        self.fragments[fragment.id] = fragment
        self.visual_children.setdefault(fragment.id, [])
        self.dom_children.setdefault(fragment.id, [])
        if fragment.parent_node is not None:
            self.anchors[fragment.parent_node] = fragment.id
        return fragment

    def set_root(self, fragment: Fragment) -> None:
        self.root_id = fragment.id

    def set_anchor(self, fragment: Fragment, node: Node | None) -> None:
        """Anchor ``fragment`` at ``node`` and index the node."""
        previous = fragment.parent_node
        if previous is not None and self.anchors.get(previous) == fragment.id:
            del self.anchors[previous]
        fragment.parent_node = node
        if node is not None:
            self.anchors[node] = fragment.id

    def link_visual(self, child: Fragment, parent: Fragment) -> None:
        self._link(self.visual_parent, self.visual_children, child.id, parent.id)

    def link_dom(self, child: Fragment, parent: Fragment) -> None:
        self._link(self.dom_parent, self.dom_children, child.id, parent.id)

    @staticmethod
    def _link(
        parents: dict[int, int],
        children: dict[int, list[int]],
        child_id: int,
        parent_id: int,
    ) -> None:
        if child_id == parent_id:
            return
        old = parents.get(child_id)
        if old == parent_id:
            return
        if old is not None:
            children[old].remove(child_id)
        parents[child_id] = parent_id
        children.setdefault(parent_id, []).append(child_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def root(self) -> Fragment | None:
        if self.root_id is None:
            return None
        return self.fragments.get(self.root_id)

    def get(self, fragment_id: int | None) -> Fragment | None:
        if fragment_id is None:
            return None
        return self.fragments.get(fragment_id)

    def parent(self, fragment: Fragment) -> Fragment | None:
        return self.get(self.visual_parent.get(fragment.id))

    def children(self, fragment: Fragment) -> list[Fragment]:
        return [self.fragments[i] for i in self.visual_children.get(fragment.id, [])]

    def dom_parent_of(self, fragment: Fragment) -> Fragment | None:
        return self.get(self.dom_parent.get(fragment.id))

    def dom_children_of(self, fragment: Fragment) -> list[Fragment]:
        return [self.fragments[i] for i in self.dom_children.get(fragment.id, [])]

    def anchored_fragment(self, node: Node) -> Fragment | None:
        """Fragment anchored exactly at ``node``, if any."""
        return self.get(self.anchors.get(node))

    def next_fragment_id(self) -> int:
        """``max(id) + 1``; 0 for an empty tree."""
        if not self.fragments:
            return 0
        return max(self.fragments) + 1

    def useful_fragments(self) -> list[Fragment]:
        return [f for f in self.fragments.values() if f.useful]

    # ------------------------------------------------------------------
    # Closest-fragment queries
    # ------------------------------------------------------------------

    def closest_fragment(self, node: Node | None) -> Fragment | None:
        """Deepest useful fragment containing ``node`` in the visual hierarchy.

        Walks down from the root, descending into the first child that
        contains the node and stopping when that child is not useful.
        """
        current = self.root
        if current is None or not current.contains_node(node):
            return None
        while True:
            next_fragment: Fragment | None = None
            for child in self.children(current):
                if child.contains_node(node):
                    if child.useful:
                        next_fragment = child
                    break
            if next_fragment is None:
                logger.debug(
                    "Closest fragment for %s is %d", skeleton_xpath(node), current.id
                )
                return current
            current = next_fragment

    def closest_dom_fragment(self, node: Node | None) -> Fragment | None:
        """Nearest useful fragment anchored at ``node`` or one of its ancestors."""
        current = node
        while current is not None:
            fragment = self.anchored_fragment(current)
            if fragment is not None and fragment.useful:
                logger.debug(
                    "Closest dom fragment for %s is %d",
                    skeleton_xpath(node),
                    fragment.id,
                )
                return fragment
            current = current.parent
        return None

    def closest_fragment_for(self, element: CandidateElement) -> Fragment | None:
        """Cached variant of ``closest_fragment`` for a candidate element."""
        cached = self.get(element.closest_fragment_id)
        if cached is not None:
            return cached
        fragment = self.closest_fragment(element.node)
        if fragment is not None and fragment.contains_candidate(element):
            element.closest_fragment_id = fragment.id
            return fragment
        return None

    def closest_dom_fragment_for(self, element: CandidateElement) -> Fragment | None:
        """Cached variant of ``closest_dom_fragment`` for a candidate element."""
        cached = self.get(element.closest_dom_fragment_id)
        if cached is not None:
            return cached
        fragment = self.closest_dom_fragment(element.node)
        if fragment is not None and fragment.contains_candidate(element):
            element.closest_dom_fragment_id = fragment.id
            return fragment
        return None

    # ------------------------------------------------------------------
    # Candidate attribution
    # ------------------------------------------------------------------

    def add_candidates(self, elements: list[CandidateElement]) -> None:
        """Attach each element to its closest fragment and every ancestor.

        An element is added along the visual parent chain of its closest
        fragment and along the DOM parent chain of its closest DOM fragment,
        so it may be counted once in each hierarchy.
        """
        for element in elements:
            closest = self.closest_fragment(element.node)
            if closest is None:
                logger.error(
                    "Could not find closest fragment for %s",
                    skeleton_xpath(element.node),
                )
                continue
            if closest.is_anchored:
                closest_dom: Fragment | None = closest
            else:
                closest_dom = self.closest_dom_fragment(element.node)

            element.closest_fragment_id = closest.id
            fragment: Fragment | None = closest
            while fragment is not None:
                fragment.add_candidate(element)
                fragment = self.parent(fragment)

            element.closest_dom_fragment_id = (
                closest_dom.id if closest_dom is not None else None
            )
            fragment = closest_dom
            while fragment is not None:
                fragment.add_candidate(element)
                fragment = self.dom_parent_of(fragment)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, dom_only: bool = False) -> str:
        """Box-drawing view of the visual (or DOM) hierarchy, one id per line."""
        root = self.root
        if root is None:
            return ""
        lines: list[str] = []
        # entries: (fragment, prefix for this line, prefix for its children)
        stack: list[tuple[Fragment, str, str]] = [(root, "", "")]
        while stack:
            fragment, prefix, child_prefix = stack.pop()
            lines.append(f"{prefix}{fragment.id}")
            if dom_only:
                kids = self.dom_children_of(fragment)
            else:
                kids = self.children(fragment)
            entries = []
            for index, child in enumerate(kids):
                last = index == len(kids) - 1
                branch, indent = ("└── ", "    ") if last else ("├── ", "│   ")
                entries.append((child, child_prefix + branch, child_prefix + indent))
            stack.extend(reversed(entries))
        return "\n".join(lines)
