"""Shared fixtures: a small two-region page and helpers to build states.

The page carries rendered geometry in ``data-rect`` attributes so fragment
usefulness can be decided without a browser:

    body
    ├── div#header  (0,0 800x100)   a "Home", a "About"
    └── div#main    (0,100 800x500) p "one", p "two"
"""

from __future__ import annotations

import pytest

from pagestate.factories import StructuralStateFactory
from pagestate.geometry import Rect, Rectangle
from pagestate.state import StateVertex
from pagestate.tree.builder import DocumentBuilder
from pagestate.tree.nodes import Document, Node
from pagestate.tree.normalizer import DomCleaner

PAGE = """
<html>
  <head><title>Index</title><script>track()</script></head>
  <body data-rect="0,0,800,600">
    <div id="header" data-rect="0,0,800,100">
      <a href="/">Home</a>
      <a href="/about">About</a>
    </div>
    <div id="main" data-rect="0,100,800,500">
      <p>{first}</p>
      <p>two</p>
    </div>
  </body>
</html>
"""


def page(first: str = "one") -> str:
    """The test page with the first paragraph's text replaced."""
    return PAGE.format(first=first)


def parse(html: str) -> Document:
    return DomCleaner().clean(DocumentBuilder().build(html))


def by_id(document: Document, element_id: str) -> Node:
    return next(
        n for n in document.iter_nodes() if n.attributes.get("id") == element_id
    )


def two_region_rectangles(document: Document) -> list[Rectangle]:
    """Root rectangle plus one child rectangle per region, leaf-level blocks."""
    header = by_id(document, "header")
    main = by_id(document, "main")
    links = header.element_children()
    paragraphs = main.element_children()
    return [
        Rectangle(0, -1, [*links, *paragraphs], Rect(0, 0, 800, 600)),
        Rectangle(1, 0, list(links), Rect(0, 0, 800, 100)),
        Rectangle(2, 0, list(paragraphs), Rect(0, 100, 800, 500)),
    ]


@pytest.fixture
def page_html():  # type: ignore[no-untyped-def]
    """Callable ``page_html(first="one")`` rendering the test page."""
    return page


@pytest.fixture
def rectangles_for():  # type: ignore[no-untyped-def]
    """Callable ``rectangles_for(document)`` building the two-region segmentation."""
    return two_region_rectangles


@pytest.fixture
def document() -> Document:
    return parse(page())


@pytest.fixture
def factory() -> StructuralStateFactory:
    return StructuralStateFactory()


@pytest.fixture
def make_state(factory: StructuralStateFactory):  # type: ignore[no-untyped-def]
    """Build a structural state from HTML; stripped DOM is the HTML itself."""

    def _make(state_id: int, html: str, name: str | None = None) -> StateVertex:
        return factory.new_state(
            state_id, "http://localhost/", name or f"state{state_id}", html, html
        )

    return _make
