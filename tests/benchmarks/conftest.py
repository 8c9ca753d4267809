"""Deterministic page generators for performance benchmarks.

All generators produce fixed, reproducible markup. No random values.
Three list tiers (10, 100 and 500 items) plus a 500-row page of about
2000 nodes in which every row changes.
Each list tier provides both "similar" and "dissimilar" pair generators.

Similar list pairs differ in the text of a single item. Dissimilar pairs swap
the list for a table, so nearly every node has to be relabeled or moved.
"""

from __future__ import annotations

import pytest


def generate_list_page(num_items: int, prefix: str = "item") -> str:
    """Generate a page holding one list with deterministic item text."""
    items = "".join(
        f'<li class="entry"><a href="/{prefix}/{i}">{prefix} {i}</a></li>'
        for i in range(num_items)
    )
    return f"<html><body><div id='main'><ul>{items}</ul></div></body></html>"


def generate_table_page(num_rows: int) -> str:
    """Generate a page holding one table with two cells per row."""
    rows = "".join(
        f"<tr><td>row {i}</td><td>{i * i}</td></tr>" for i in range(num_rows)
    )
    return f"<html><body><div id='main'><table>{rows}</table></div></body></html>"


def generate_row_page(num_rows: int, suffix: str = "") -> str:
    """Generate a list of four-node rows: li > (a, span > text)."""
    rows = "".join(
        f'<li><a href="/row/{i}"></a><span>row {i}{suffix}</span></li>'
        for i in range(num_rows)
    )
    return f"<html><body><ul>{rows}</ul></body></html>"


def _make_similar(num_items: int) -> tuple[str, str]:
    """Generate a pair where only the last item's text changes."""
    left = generate_list_page(num_items)
    right = left.replace(
        f"item {num_items - 1}</a>", f"item {num_items - 1} (new)</a>"
    )
    return left, right


def _make_dissimilar(num_items: int) -> tuple[str, str]:
    """Generate a list page and a table page of the same size."""
    return generate_list_page(num_items), generate_table_page(num_items)


# --- Fixtures for each size tier ---


@pytest.fixture
def pair_10item_similar() -> tuple[str, str]:
    """10-item list pair with one changed text node."""
    return _make_similar(10)


@pytest.fixture
def pair_10item_dissimilar() -> tuple[str, str]:
    """10-item list against a 10-row table."""
    return _make_dissimilar(10)


@pytest.fixture
def pair_100item_similar() -> tuple[str, str]:
    """100-item list pair with one changed text node."""
    return _make_similar(100)


@pytest.fixture
def pair_100item_dissimilar() -> tuple[str, str]:
    """100-item list against a 100-row table."""
    return _make_dissimilar(100)


@pytest.fixture
def pair_500item_similar() -> tuple[str, str]:
    """500-item list pair with one changed text node."""
    return _make_similar(500)


@pytest.fixture
def pair_500item_dissimilar() -> tuple[str, str]:
    """500-item list against a 500-row table."""
    return _make_dissimilar(500)


@pytest.fixture
def pair_2000node_rows() -> tuple[str, str]:
    """500 rows of four nodes each; every row's text differs."""
    return generate_row_page(500), generate_row_page(500, suffix=" (edited)")
