"""Default "is displayed" predicate for DOM nodes.

A node counts as displayed unless it, or one of its ancestors:
- had its ``displayed`` flag cleared by an earlier pass,
- is marked ``dynamic`` (its content is known to churn between revisits),
- carries ``hidden``, ``aria-hidden="true"`` or ``type="hidden"``,
- has an inline style with ``display: none`` or ``visibility: hidden``.

Callers that have live computed styles plug in their own predicate through
``pagestate.protocols.DisplayPredicate``.
"""

from __future__ import annotations

import re

from pagestate.tree.nodes import Node

__all__ = ["is_displayed"]

# "display:none" / "visibility: hidden" inside an inline style attribute
_HIDDEN_STYLE = re.compile(
    r"(?:^|;)\s*(?:display\s*:\s*none|visibility\s*:\s*hidden)"
    r"\s*(?:!important)?\s*(?:;|$)",
    re.IGNORECASE,
)


def _hidden_by_markup(node: Node) -> bool:
    if node.is_text:
        return False
    attrs = node.attributes
    if "hidden" in attrs:
        return True
    if attrs.get("aria-hidden", "").lower() == "true":
        return True
    if node.tag == "input" and attrs.get("type", "").lower() == "hidden":
        return True
    return bool(_HIDDEN_STYLE.search(attrs.get("style", "")))


def is_displayed(node: Node | None) -> bool:
    """Return True when ``node`` would be rendered and is not known dynamic."""
    if node is None:
        return False
    current: Node | None = node
    while current is not None:
        if not current.displayed or current.dynamic or _hidden_by_markup(current):
            return False
        current = current.parent
    return True
