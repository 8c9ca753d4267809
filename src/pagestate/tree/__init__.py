"""Tree subpackage for DOM snapshot primitives.

Re-exports the public API for the tree module:
- Node / NodeType: a DOM node and its kind (ELEMENT, TEXT)
- Document: a parsed snapshot with ``body`` lookup
- DocumentBuilder: converts HTML into a Document (BeautifulSoup)
- DomCleaner / strip_dom: structural and string-level normalization
- is_displayed: default visibility predicate
"""

from pagestate.tree.builder import DocumentBuilder
from pagestate.tree.nodes import (
    Document,
    Node,
    NodeType,
    contains,
    lowest_common_ancestor,
    skeleton_xpath,
)
from pagestate.tree.normalizer import DomCleaner, strip_dom
from pagestate.tree.visibility import is_displayed

__all__ = [
    "Document",
    "DocumentBuilder",
    "DomCleaner",
    "Node",
    "NodeType",
    "contains",
    "is_displayed",
    "lowest_common_ancestor",
    "skeleton_xpath",
    "strip_dom",
]
