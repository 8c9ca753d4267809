"""DocumentBuilder: converts an HTML snapshot into a typed Node tree.

Parsing is delegated to BeautifulSoup; the builder then walks the soup and
keeps elements and text runs only (comments, doctypes and processing
instructions are dropped).  Multi-valued attributes such as ``class`` are
joined back into a single space-separated string.

Snapshots exported by the driver may carry rendered geometry in an attribute
(``data-rect="x,y,width,height"`` by default); when present it is parsed into
``Node.rect`` so fragments can be measured offline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from pagestate.geometry import Rect
from pagestate.tree.nodes import Document, Node, NodeType

logger = logging.getLogger(__name__)


@dataclass
class DocumentBuilder:
    """Converts HTML into a ``Document``.

    Attributes:
        rect_attribute: Attribute holding serialized geometry; empty string
            disables geometry parsing.
        parser:         BeautifulSoup parser name.

    Example::
        builder = DocumentBuilder()
        doc = builder.build("<html><body><div>x</div></body></html>")
        # doc.body.children[0].tag == "div"
    """

    rect_attribute: str = "data-rect"
    parser: str = "html.parser"

    def build(self, html: str) -> Document:
        """Parse ``html`` and return its Document.

        When the markup has several top-level elements they are wrapped in a
        synthetic ``html`` element so the document always has a single root.
        """
        soup = BeautifulSoup(html, self.parser)
        top = [n for n in (self._convert(c) for c in soup.children) if n is not None]
        elements = [n for n in top if n.node_type == NodeType.ELEMENT]
        if len(top) == 1 and elements:
            root = elements[0]
        else:
            root = Node.element("html")
            for node in top:
                root.append(node)
        return Document(root)

    def _convert(self, item: object) -> Node | None:
        if isinstance(item, Tag):
            return self._convert_tag(item)
        if isinstance(item, NavigableString) and not isinstance(
            item, PreformattedString
        ):
            text = str(item)
            if not text.strip():
                return None
            return Node.text_node(text)
        return None

    def _convert_tag(self, tag: Tag) -> Node:
        attributes = {
            name: " ".join(value) if isinstance(value, list) else str(value)
            for name, value in tag.attrs.items()
        }
        node = Node(
            node_type=NodeType.ELEMENT, tag=tag.name.lower(), attributes=attributes
        )
        raw_rect = attributes.get(self.rect_attribute) if self.rect_attribute else None
        if raw_rect:
            try:
                node.rect = Rect.parse(raw_rect)
            except ValueError:
                logger.debug(
                    "Ignoring malformed %s=%r on <%s>",
                    self.rect_attribute,
                    raw_rect,
                    node.tag,
                )
        for child in tag.children:
            converted = self._convert(child)
            if converted is not None:
                node.append(converted)
        return node
