"""Tests for Fragment and the FragmentTree arena.

Verifies:
- registration rejects unassigned and duplicate ids; next_fragment_id is max + 1
- visual and DOM edges are independent and relinking moves a child
- containment is anchor-based, falling back to nested blocks when unanchored
- closest-fragment queries in both hierarchies and their per-element cache
- candidate attribution along both parent chains
- box-drawing rendering
"""

from __future__ import annotations

import logging

import pytest

from pagestate.fragments.fragment import UNASSIGNED_ID, Fragment, FragmentTree
from pagestate.geometry import Rect
from pagestate.state import CandidateElement
from pagestate.tree.nodes import Node


@pytest.fixture
def dom() -> dict[str, Node]:
    """body > (header > (a1, a2), main > (p1, p2))"""
    a1, a2 = Node.element("a"), Node.element("a")
    p1, p2 = Node.element("p"), Node.element("p")
    header = Node.element("div", a1, a2)
    main = Node.element("div", p1, p2)
    body = Node.element("body", header, main)
    return {
        "body": body,
        "header": header,
        "main": main,
        "a1": a1,
        "a2": a2,
        "p1": p1,
        "p2": p2,
    }


@pytest.fixture
def tree(dom: dict[str, Node]) -> FragmentTree:
    """0 (body) -> 1 (header), 2 (main); all useful and anchored."""
    tree = FragmentTree()
    root = tree.add(
        Fragment(0, "s", nested_blocks=[dom["a1"], dom["p2"]], useful=True)
    )
    header = tree.add(
        Fragment(1, "s", nested_blocks=[dom["a1"], dom["a2"]], useful=True)
    )
    main = tree.add(Fragment(2, "s", nested_blocks=[dom["p1"], dom["p2"]], useful=True))
    tree.set_root(root)
    tree.set_anchor(root, dom["body"])
    tree.set_anchor(header, dom["header"])
    tree.set_anchor(main, dom["main"])
    for child in (header, main):
        tree.link_visual(child, root)
        tree.link_dom(child, root)
    return tree


class TestFragment:
    def test_lca_of_nested_blocks(self, dom: dict[str, Node]) -> None:
        fragment = Fragment(0, "s", nested_blocks=[dom["a1"], dom["p1"]])
        assert fragment.lca is dom["body"]

    def test_lca_without_blocks(self) -> None:
        assert Fragment(0, "s").lca is None

    def test_anchored_containment(self, dom: dict[str, Node]) -> None:
        fragment = Fragment(
            0, "s", nested_blocks=[dom["a1"]], parent_node=dom["header"]
        )
        assert fragment.is_anchored
        assert fragment.contains_node(dom["a2"])
        assert not fragment.contains_node(dom["p1"])

    def test_unanchored_containment(self, dom: dict[str, Node]) -> None:
        fragment = Fragment(0, "s", nested_blocks=[dom["a1"]])
        assert fragment.contains_node(dom["a1"])
        assert not fragment.contains_node(dom["a2"])
        assert not fragment.contains_node(None)

    def test_add_candidate_once(self, dom: dict[str, Node]) -> None:
        fragment = Fragment(0, "s")
        element = CandidateElement(dom["a1"])
        fragment.add_candidate(element)
        fragment.add_candidate(element)
        assert fragment.candidates == [element]

    def test_adjust_rect(self) -> None:
        fragment = Fragment(0, "s", rect=Rect(10, 10, 10, 10))
        fragment.adjust_rect([Rect(0, 0, 5, 5), Rect(30, 30, 10, 10)])
        assert fragment.rect == Rect(0, 0, 40, 40)

    def test_adjust_rect_without_rect(self) -> None:
        fragment = Fragment(0, "s")
        fragment.adjust_rect([Rect(5, 5, 5, 5)])
        assert fragment.rect == Rect(5, 5, 5, 5)


class TestRegistration:
    def test_unassigned_id_rejected(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            FragmentTree().add(Fragment(UNASSIGNED_ID, "s"))

    def test_duplicate_id_rejected(self, tree: FragmentTree) -> None:
        with pytest.raises(ValueError, match="Duplicate"):
            tree.add(Fragment(1, "s"))

    def test_next_id_empty(self) -> None:
        assert FragmentTree().next_fragment_id() == 0

    def test_next_id_is_max_plus_one(self) -> None:
        tree = FragmentTree()
        tree.add(Fragment(3, "s"))
        tree.add(Fragment(7, "s"))
        assert tree.next_fragment_id() == 8

    def test_ids_unique(self, tree: FragmentTree) -> None:
        ids = [f.id for f in tree]
        assert len(ids) == len(set(ids)) == len(tree)

    def test_contains(self, tree: FragmentTree) -> None:
        assert 1 in tree
        assert 9 not in tree

    def test_anchor_index(self, tree: FragmentTree, dom: dict[str, Node]) -> None:
        assert tree.anchored_fragment(dom["main"]) is tree.get(2)
        assert tree.anchored_fragment(dom["p1"]) is None

    def test_reanchoring_drops_old_index(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        header = tree.get(1)
        assert header is not None
        tree.set_anchor(header, dom["a1"])
        assert tree.anchored_fragment(dom["header"]) is None
        assert tree.anchored_fragment(dom["a1"]) is header


class TestLinks:
    def test_shared_root(self, tree: FragmentTree) -> None:
        root = tree.root
        assert root is not None
        assert tree.parent(root) is None
        assert tree.dom_parent_of(root) is None
        assert [f.id for f in tree.children(root)] == [1, 2]
        assert [f.id for f in tree.dom_children_of(root)] == [1, 2]

    def test_hierarchies_are_independent(self, tree: FragmentTree) -> None:
        header, main = tree.get(1), tree.get(2)
        assert header is not None and main is not None
        tree.link_dom(main, header)
        assert tree.parent(main) is tree.root
        assert tree.dom_parent_of(main) is header

    def test_relink_moves_child(self, tree: FragmentTree) -> None:
        header, main = tree.get(1), tree.get(2)
        assert header is not None and main is not None
        tree.link_visual(main, header)
        assert [f.id for f in tree.children(header)] == [2]
        assert tree.root is not None
        assert [f.id for f in tree.children(tree.root)] == [1]

    def test_self_link_ignored(self, tree: FragmentTree) -> None:
        header = tree.get(1)
        assert header is not None
        tree.link_visual(header, header)
        assert tree.parent(header) is tree.root

    def test_useful_fragments(self, tree: FragmentTree) -> None:
        main = tree.get(2)
        assert main is not None
        main.useful = False
        assert [f.id for f in tree.useful_fragments()] == [0, 1]


class TestClosestFragment:
    def test_descends_to_deepest(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        fragment = tree.closest_fragment(dom["p1"])
        assert fragment is not None and fragment.id == 2

    def test_stops_at_non_useful_child(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        main = tree.get(2)
        assert main is not None
        main.useful = False
        fragment = tree.closest_fragment(dom["p1"])
        assert fragment is not None and fragment.id == 0

    def test_node_outside_root(self, tree: FragmentTree) -> None:
        assert tree.closest_fragment(Node.element("p")) is None

    def test_empty_tree(self, dom: dict[str, Node]) -> None:
        assert FragmentTree().closest_fragment(dom["p1"]) is None

    def test_dom_walks_ancestors(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        fragment = tree.closest_dom_fragment(dom["a2"])
        assert fragment is not None and fragment.id == 1

    def test_dom_skips_non_useful(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        header = tree.get(1)
        assert header is not None
        header.useful = False
        fragment = tree.closest_dom_fragment(dom["a2"])
        assert fragment is not None and fragment.id == 0

    def test_cached_for_element(self, tree: FragmentTree, dom: dict[str, Node]) -> None:
        element = CandidateElement(dom["p2"])
        first = tree.closest_fragment_for(element)
        assert first is not None
        assert element.closest_fragment_id == 2
        assert tree.closest_fragment_for(element) is first

    def test_dom_cached_for_element(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        element = CandidateElement(dom["a1"])
        assert tree.closest_dom_fragment_for(element) is tree.get(1)
        assert element.closest_dom_fragment_id == 1


class TestAddCandidates:
    def test_added_along_both_chains(
        self, tree: FragmentTree, dom: dict[str, Node]
    ) -> None:
        element = CandidateElement(dom["a2"])
        tree.add_candidates([element])
        root, header, main = tree.get(0), tree.get(1), tree.get(2)
        assert root is not None and header is not None and main is not None
        assert header.candidates == [element]
        assert root.candidates == [element]
        assert main.candidates == []
        assert element.closest_fragment_id == 1
        assert element.closest_dom_fragment_id == 1

    def test_unknown_node_is_logged(
        self, tree: FragmentTree, caplog: pytest.LogCaptureFixture
    ) -> None:
        element = CandidateElement(Node.element("button"))
        with caplog.at_level(logging.ERROR):
            tree.add_candidates([element])
        assert "Could not find closest fragment" in caplog.text
        assert element.closest_fragment_id is None


class TestRender:
    def test_visual(self, tree: FragmentTree) -> None:
        extra = tree.add(Fragment(3, "s"))
        header = tree.get(1)
        assert header is not None
        tree.link_visual(extra, header)
        assert tree.render() == "0\n├── 1\n│   └── 3\n└── 2"

    def test_dom_only(self, tree: FragmentTree) -> None:
        extra = tree.add(Fragment(3, "s"))
        header = tree.get(1)
        assert header is not None
        tree.link_visual(extra, header)
        assert tree.render(dom_only=True) == "0\n├── 1\n└── 2"

    def test_empty(self) -> None:
        assert FragmentTree().render() == ""
