"""DOM normalization: cosmetic string stripping and structural cleaning.

Two independent passes:

- ``strip_dom`` works on the raw HTML string and produces the "stripped DOM"
  every state carries.  It removes comments, script/style bodies and
  inter-tag whitespace so two snapshots that differ only cosmetically yield
  the same string.
- ``DomCleaner`` works on a parsed ``Document`` and removes subtrees that
  never render (scripts, styles, templates, ...) plus blank text runs, so the
  edit-distance engine only sees visible structure.
"""

from __future__ import annotations

import re

from pagestate.tree.nodes import Document, Node

# Compiled regex patterns (module-level, compiled once)

# HTML comments, including multi-line ones
_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

# Bodies of non-rendering elements; the backreference pairs open/close tags
_NON_RENDERING = re.compile(
    r"<(script|style|noscript|template)\b[^>]*>.*?</\1\s*>",
    re.DOTALL | re.IGNORECASE,
)

# Whitespace between a closing '>' and the next '<'
_INTER_TAG_SPACE = re.compile(r">\s+<")

# Any whitespace run
_WHITESPACE = re.compile(r"\s+")

NON_VISUAL_TAGS = frozenset(
    {"script", "style", "noscript", "template", "meta", "link", "title", "base"}
)


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to one space and trim both ends."""
    return _WHITESPACE.sub(" ", text).strip()


def strip_dom(html: str) -> str:
    """Cosmetically normalize an HTML string for comparison.

    Processing pipeline (applied in order):
    1. Drop comments.
    2. Drop script/style/noscript/template elements with their bodies.
    3. Remove whitespace between tags.
    4. Collapse the remaining whitespace runs.
    """
    s = _COMMENT.sub("", html)
    s = _NON_RENDERING.sub("", s)
    s = _INTER_TAG_SPACE.sub("><", s)
    return collapse_whitespace(s)


class DomCleaner:
    """Removes non-rendering subtrees and blank text from a Document in place.

    Example usage:
        cleaner = DomCleaner()
        cleaner.clean(document)   # same Document, scripts and blank text gone
    """

    def __init__(self, drop_tags: frozenset[str] = NON_VISUAL_TAGS) -> None:
        self._drop_tags = drop_tags

    def clean(self, document: Document) -> Document:
        self._clean_node(document.root)
        return document

    def _clean_node(self, node: Node) -> None:
        kept: list[Node] = []
        for child in node.children:
            if child.is_text:
                if not child.text.strip():
                    continue
                child.text = collapse_whitespace(child.text)
            elif child.tag in self._drop_tags:
                continue
            else:
                self._clean_node(child)
            kept.append(child)
        node.children = kept
