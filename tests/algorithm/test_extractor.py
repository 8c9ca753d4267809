"""Tests for TreeExtractor.

Verifies:
- post_order and labeled_tree line up position for position
- select elements contribute only their first child, as a leaf
- the collapse predicate turns matching elements into leaves
- labels are deterministic and depend on include_text / visual_data
- None roots and cyclic structures raise ValueError
"""

import pytest

from pagestate.algorithm.extractor import LabeledNode, TreeExtractor
from pagestate.geometry import Rect
from pagestate.tree.nodes import Node


def _flatten(labeled: LabeledNode) -> list[LabeledNode]:
    out: list[LabeledNode] = []
    for child in labeled.children:
        out.extend(_flatten(child))
    out.append(labeled)
    return out


@pytest.fixture
def extractor() -> TreeExtractor:
    return TreeExtractor()


@pytest.fixture
def root() -> Node:
    return Node.element(
        "div",
        Node.element("span", Node.text_node("x")),
        Node.element("p", Node.text_node("  y  z ")),
    )


class TestPostOrder:
    def test_children_before_parent(self, extractor: TreeExtractor, root: Node) -> None:
        labels = extractor.labels(root)
        assert labels == ["#text:x", "span", "#text:y z", "p", "div"]

    def test_lists_line_up(self, extractor: TreeExtractor, root: Node) -> None:
        post_order, labeled = extractor.extract(root)
        flat = _flatten(labeled)
        assert [entry.node for entry in flat] == post_order
        assert [entry.label for entry in flat] == extractor.labels(root)

    def test_deterministic(self, extractor: TreeExtractor, root: Node) -> None:
        assert extractor.labels(root) == extractor.labels(root)

    def test_single_node(self, extractor: TreeExtractor) -> None:
        node = Node.element("div")
        post_order, labeled = extractor.extract(node)
        assert post_order == [node]
        assert labeled.children == []


class TestSelect:
    def test_only_first_option_as_leaf(self, extractor: TreeExtractor) -> None:
        select = Node.element(
            "select",
            Node.element("option", Node.text_node("a")),
            Node.element("option", Node.text_node("b")),
        )
        assert extractor.labels(select) == ["option", "select"]

    def test_option_lists_of_different_length_compare_equal(
        self, extractor: TreeExtractor
    ) -> None:
        short = Node.element("select", Node.element("option"))
        long = Node.element("select", Node.element("option"), Node.element("option"))
        assert extractor.labels(short) == extractor.labels(long)


class TestCollapse:
    def test_matching_element_becomes_leaf(
        self, extractor: TreeExtractor, root: Node
    ) -> None:
        post_order = extractor.post_order(root, collapse=lambda n: n.tag == "span")
        assert [n.tag for n in post_order] == ["span", "#text", "p", "div"]

    def test_collapsed_root(self, extractor: TreeExtractor, root: Node) -> None:
        assert extractor.post_order(root, collapse=lambda n: True) == [root]

    def test_text_nodes_are_never_collapsed(self, extractor: TreeExtractor) -> None:
        calls: list[str] = []

        def collapse(node: Node) -> bool:
            calls.append(node.tag)
            return False

        extractor.extract(Node.element("p", Node.text_node("a")), collapse)
        assert "#text" not in calls


class TestLabels:
    def test_text_without_content(self) -> None:
        extractor = TreeExtractor(include_text=False)
        assert extractor.node_label(Node.text_node("abc")) == "#text"

    def test_text_is_whitespace_collapsed(self, extractor: TreeExtractor) -> None:
        assert extractor.node_label(Node.text_node(" a \n b ")) == "#text:a b"

    def test_element_label_is_tag(self, extractor: TreeExtractor) -> None:
        assert extractor.node_label(Node.element("DIV", id="x")) == "div"

    def test_visual_label(self) -> None:
        extractor = TreeExtractor(visual_data=True, bucket_px=50)
        node = Node.element("div", style="color: #FFF; background-color: rgb(0, 0, 0)")
        node.rect = Rect(10, 60, 100, 20)
        assert extractor.node_label(node) == "div[#fff|rgb(0,0,0)|0,1]"

    def test_visual_label_without_style_or_geometry(self) -> None:
        extractor = TreeExtractor(visual_data=True)
        assert extractor.node_label(Node.element("div")) == "div[||]"


class TestErrors:
    def test_none_root(self, extractor: TreeExtractor) -> None:
        with pytest.raises(ValueError, match="None"):
            extractor.extract(None)

    def test_cycle(self, extractor: TreeExtractor) -> None:
        a = Node.element("div")
        b = Node.element("span")
        a.append(b)
        b.children.append(a)
        with pytest.raises(ValueError, match="cycle"):
            extractor.extract(a)
