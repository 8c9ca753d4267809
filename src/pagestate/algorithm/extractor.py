"""TreeExtractor: DOM subtree -> (post-order node list, labeled tree).

The two outputs line up position for position: ``post_order[k]`` is the node
behind the ``k + 1``-th node of the labeled tree in post-order, which is what
lets a 1-based edit mapping be translated back to DOM nodes.

Traversal rules:
- children are visited in document order, a node follows all its children;
- a ``select`` contributes only its first child, as a leaf, so long option
  lists do not dominate the comparison;
- an optional ``collapse`` predicate turns matching nodes into leaves, which
  hides everything below them from the comparison.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from pagestate.tree.nodes import TEXT_TAG, Node
from pagestate.tree.normalizer import collapse_whitespace

__all__ = ["Collapse", "LabeledNode", "TreeExtractor"]

# "color: #fff" / "background-color: rgb(0, 0, 0)" inside an inline style
_STYLE_COLOR = re.compile(
    r"(?:^|;)\s*(background-color|color)\s*:\s*([^;]+)", re.IGNORECASE
)

_Frame = tuple[Node, Iterator[Node], list["LabeledNode"]]
Collapse = Callable[[Node], bool]


@dataclass(slots=True)
class LabeledNode:
    """A node of the comparison tree.

    Attributes:
        node:     The DOM node this entry stands for.
        label:    Computed string label.
        children: Owned labeled children, in document order.
    """

    node: Node
    label: str
    children: list[LabeledNode] = field(default_factory=list)


class TreeExtractor:
    """Builds comparison trees from DOM nodes.

    Args:
        visual_data:  Include a color/position bucket in element labels.
        include_text: Label text nodes with their (whitespace-collapsed) text.
        bucket_px:    Grid size used when bucketing positions.
    """

    def __init__(
        self,
        visual_data: bool = False,
        include_text: bool = True,
        bucket_px: int = 50,
    ) -> None:
        self.visual_data = visual_data
        self.include_text = include_text
        self.bucket_px = bucket_px

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def node_label(self, node: Node) -> str:
        """String representation of one node used as its tree label."""
        if node.is_text:
            if self.include_text:
                return f"{TEXT_TAG}:{collapse_whitespace(node.text)}"
            return TEXT_TAG
        if not self.visual_data:
            return node.tag
        return f"{node.tag}[{self._visual_signature(node)}]"

    def extract(
        self, root: Node | None, collapse: Collapse | None = None
    ) -> tuple[list[Node], LabeledNode]:
        """Return the post-order node list and the labeled tree of ``root``.

        Nodes for which ``collapse`` returns True keep their label but lose
        their children.

        Raises:
            ValueError: If ``root`` is None or the structure contains a cycle.
        """
        if root is None:
            raise ValueError("Cannot extract a comparison tree from a None root")

        order: list[Node] = []
        seen: set[int] = set()
        stack: list[_Frame] = []
        result: LabeledNode | None = None

        self._enter(root, stack, seen, as_leaf=self._collapsed(root, collapse))
        while stack:
            node, pending, built = stack[-1]
            child = next(pending, None)
            if child is not None:
                as_leaf = node.tag == "select" or self._collapsed(child, collapse)
                self._enter(child, stack, seen, as_leaf=as_leaf)
                continue
            stack.pop()
            order.append(node)
            labeled = LabeledNode(node, self.node_label(node), built)
            if stack:
                stack[-1][2].append(labeled)
            else:
                result = labeled

        assert result is not None
        return order, result

    def post_order(
        self, root: Node | None, collapse: Collapse | None = None
    ) -> list[Node]:
        return self.extract(root, collapse)[0]

    def labeled_tree(
        self, root: Node | None, collapse: Collapse | None = None
    ) -> LabeledNode:
        return self.extract(root, collapse)[1]

    def labels(self, root: Node | None) -> list[str]:
        """Post-order label sequence, handy for determinism checks."""
        return [self.node_label(n) for n in self.post_order(root)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter(
        self, node: Node, stack: list[_Frame], seen: set[int], as_leaf: bool
    ) -> None:
        if id(node) in seen:
            raise ValueError(f"Node <{node.tag}> reached twice: tree contains a cycle")
        seen.add(id(node))
        children: list[Node] = [] if as_leaf else self._visited_children(node)
        stack.append((node, iter(children), []))

    @staticmethod
    def _collapsed(node: Node, collapse: Collapse | None) -> bool:
        return collapse is not None and not node.is_text and collapse(node)

    @staticmethod
    def _visited_children(node: Node) -> list[Node]:
        if node.tag == "select":
            return node.children[:1]
        return node.children

    def _visual_signature(self, node: Node) -> str:
        colors = dict.fromkeys(("color", "background-color"), "")
        for match in _STYLE_COLOR.finditer(node.attributes.get("style", "")):
            value = match.group(2).strip().lower().replace(" ", "")
            colors[match.group(1).lower()] = value
        position = ""
        if node.rect is not None:
            bx = node.rect.x // self.bucket_px
            by = node.rect.y // self.bucket_px
            position = f"{bx},{by}"
        return f"{colors['color']}|{colors['background-color']}|{position}"
