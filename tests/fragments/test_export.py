"""Tests for export_fragments and StateVertex.export_fragments."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from PIL import Image

from pagestate.fragments.export import export_fragments
from pagestate.fragments.fragment import Fragment, FragmentTree
from pagestate.geometry import Rect


@pytest.fixture
def viewport() -> Image.Image:
    return Image.new("RGB", (800, 600), "white")


@pytest.fixture
def tree() -> FragmentTree:
    tree = FragmentTree()
    root = tree.add(Fragment(0, "s", rect=Rect(0, 0, 800, 600), useful=True))
    tree.set_root(root)
    tree.add(Fragment(1, "s", rect=Rect(0, 0, 800, 100), useful=True))
    tree.add(Fragment(2, "s", rect=Rect(0, 0, 5, 5), useful=False))
    tree.add(Fragment(3, "s", useful=True))
    return tree


class TestExportFragments:
    def test_writes_useful_fragments(
        self, tree: FragmentTree, viewport: Image.Image, tmp_path: Path
    ) -> None:
        written = export_fragments(tree, "index.html", tmp_path, viewport)
        assert written == [tmp_path / "index" / "0.png", tmp_path / "index" / "1.png"]
        with Image.open(written[1]) as image:
            assert image.size == (800, 100)

    def test_missing_directory(
        self,
        tree: FragmentTree,
        viewport: Image.Image,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.ERROR):
            written = export_fragments(tree, "s", tmp_path / "nope", viewport)
        assert written == []
        assert "does not exist" in caplog.text

    def test_accepts_string_paths(
        self, tree: FragmentTree, viewport: Image.Image, tmp_path: Path
    ) -> None:
        written = export_fragments(tree, "state1", str(tmp_path), viewport)
        assert len(written) == 2
        assert all(path.exists() for path in written)


class TestStateExport:
    def test_unfragmented_state_exports_nothing(
        self, make_state, page_html, viewport: Image.Image, tmp_path: Path
    ) -> None:
        state = make_state(1, page_html())
        assert state.export_fragments(tmp_path, viewport) == []

    def test_fragmented_state(
        self,
        make_state,
        page_html,
        rectangles_for,
        viewport: Image.Image,
        tmp_path: Path,
    ) -> None:
        state = make_state(1, page_html(), name="home")
        state.add_fragments(rectangles_for(state.document))
        written = state.export_fragments(tmp_path, viewport)
        assert sorted(p.name for p in written) == ["0.png", "1.png", "2.png"]
        assert all(p.parent == tmp_path / "home" for p in written)
