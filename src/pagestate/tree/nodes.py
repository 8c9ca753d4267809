"""Node dataclass, NodeType StrEnum and Document for DOM snapshots.

A ``Document`` is an ordered tree of ``Node`` objects built fresh for every
browser snapshot.  Structure never changes after construction; only the two
annotation bits ``displayed`` and ``dynamic`` are written by later passes.

Nodes compare by identity (``eq=False``) so they can key dictionaries such as
the fragment anchor index.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum, auto

from pagestate.geometry import Rect

__all__ = [
    "TEXT_TAG",
    "Document",
    "Node",
    "NodeType",
    "contains",
    "lowest_common_ancestor",
    "skeleton_xpath",
]

TEXT_TAG = "#text"


class NodeType(StrEnum):
    """Kinds of DOM node kept in a snapshot.

    - ELEMENT -> "element" : a tag
    - TEXT    -> "text"    : a non-blank text run
    """

    ELEMENT = auto()
    TEXT = auto()


@dataclass(eq=False, slots=True)
class Node:
    """A DOM node.

    Attributes:
        node_type:  ELEMENT or TEXT.
        tag:        Lower-case tag name; ``"#text"`` for text nodes.
        text:       Text content of a TEXT node; empty for elements.
        attributes: Element attributes (copied from the snapshot).
        children:   Ordered child nodes.
        parent:     Non-owning back reference, None for the root.
        rect:       Rendered geometry when the snapshot carried it.
        displayed:  Cleared by passes that find the node invisible.
        dynamic:    Set once the node is known to change between revisits.
    """

    node_type: NodeType
    tag: str
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)
    parent: Node | None = field(default=None, repr=False)
    rect: Rect | None = None
    displayed: bool = True
    dynamic: bool = False

    @classmethod
    def element(cls, tag: str, *children: Node, **attributes: str) -> Node:
        node = cls(node_type=NodeType.ELEMENT, tag=tag.lower(), attributes=attributes)
        for child in children:
            node.append(child)
        return node

    @classmethod
    def text_node(cls, text: str) -> Node:
        return cls(node_type=NodeType.TEXT, tag=TEXT_TAG, text=text)

    @property
    def is_text(self) -> bool:
        return self.node_type == NodeType.TEXT

    def append(self, child: Node) -> Node:
        """Attach ``child`` as the last child and set its parent link."""
        child.parent = self
        self.children.append(child)
        return child

    def text_content(self) -> str:
        """Concatenated text of this node and all of its descendants."""
        if self.is_text:
            return self.text
        return "".join(n.text for n in self.iter_subtree() if n.is_text)

    def iter_subtree(self) -> Iterator[Node]:
        """Pre-order walk over this node and its descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ancestors(self) -> Iterator[Node]:
        """Parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def element_children(self) -> list[Node]:
        return [c for c in self.children if not c.is_text]


def contains(ancestor: Node | None, node: Node | None) -> bool:
    """True when ``ancestor`` is ``node`` or one of its ancestors."""
    if ancestor is None or node is None:
        return False
    current: Node | None = node
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


def lowest_common_ancestor(nodes: Iterable[Node | None]) -> Node | None:
    """Deepest node containing every node in ``nodes``.

    A single node is its own LCA.  Returns None for an empty input or when the
    nodes live in different trees.
    """
    result: Node | None = None
    for node in nodes:
        if node is None:
            continue
        if result is None:
            result = node
            continue
        while result is not None and not contains(result, node):
            result = result.parent
        if result is None:
            return None
    return result


def skeleton_xpath(node: Node | None) -> str:
    """Positional XPath such as ``/HTML[1]/BODY[1]/DIV[2]``.

    Used in log messages and to match nodes across two snapshots of the same
    page.
    """
    if node is None:
        return ""
    steps: list[str] = []
    current: Node | None = node
    while current is not None:
        parent = current.parent
        if current.is_text:
            name = "text()"
            siblings = (
                [c for c in parent.children if c.is_text] if parent else [current]
            )
        else:
            name = current.tag.upper()
            siblings = (
                [c for c in parent.children if c.tag == current.tag]
                if parent
                else [current]
            )
        position = next(i for i, s in enumerate(siblings, start=1) if s is current)
        steps.append(f"{name}[{position}]")
        current = parent
    return "/" + "/".join(reversed(steps))


@dataclass(slots=True)
class Document:
    """A parsed snapshot: the root node plus convenience lookups."""

    root: Node

    @property
    def body(self) -> Node:
        """The first ``body`` element, or the root when the snapshot has none."""
        for node in self.root.iter_subtree():
            if node.tag == "body":
                return node
        return self.root

    def iter_nodes(self) -> Iterator[Node]:
        return self.root.iter_subtree()

    def find_all(self, tag: str) -> list[Node]:
        tag = tag.lower()
        return [n for n in self.root.iter_subtree() if n.tag == tag]

    def subtree_size(self) -> int:
        """Number of nodes below (and including) ``body``."""
        return sum(1 for _ in self.body.iter_subtree())
