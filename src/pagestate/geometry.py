"""Rect and Rectangle: pixel geometry shared by the DOM and fragment layers.

``Rect`` is an immutable axis-aligned box in page coordinates.  ``Rectangle``
is one region produced by the external visual segmentation pass: an id, the
id of its enclosing region (``-1`` for the page root), the DOM leaf nodes it
encloses ("nested blocks") and its pixel bounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagestate.tree.nodes import Node

__all__ = ["ROOT_PARENT_ID", "Rect", "Rectangle"]

ROOT_PARENT_ID = -1


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned box.

    Attributes:
        x:      Left edge in pixels.
        y:      Top edge in pixels.
        width:  Width in pixels (>= 0).
        height: Height in pixels (>= 0).
    """

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            msg = f"Rect dimensions must be >= 0, got {self.width}x{self.height}"
            raise ValueError(msg)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, other: Rect) -> bool:
        """True when ``other`` lies entirely inside this box (edges inclusive)."""
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def union(self, other: Rect) -> Rect:
        """Smallest box covering both boxes."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        return Rect(
            left,
            top,
            max(self.right, other.right) - left,
            max(self.bottom, other.bottom) - top,
        )

    def crop_box(self) -> tuple[int, int, int, int]:
        """``(left, upper, right, lower)`` tuple as expected by ``PIL.Image.crop``."""
        return (self.x, self.y, self.right, self.bottom)

    @classmethod
    def parse(cls, raw: str) -> Rect:
        """Parse ``"x,y,width,height"`` (floats are truncated).

        Raises:
            ValueError: If the string does not hold four numbers.
        """
        parts = [p for p in raw.replace(" ", ",").split(",") if p]
        if len(parts) != 4:
            msg = f"Expected 'x,y,width,height', got {raw!r}"
            raise ValueError(msg)
        x, y, w, h = (int(float(p)) for p in parts)
        return cls(x, y, w, h)


@dataclass(slots=True)
class Rectangle:
    """One region of the visual segmentation.

    Attributes:
        id:            Unique id within the page.
        parent_id:     Id of the enclosing region, ``ROOT_PARENT_ID`` for the root.
        nested_blocks: DOM leaf nodes enclosed by the region.
        rect:          Pixel bounds (None when the segmenter had no geometry).
    """

    id: int
    parent_id: int = ROOT_PARENT_ID
    nested_blocks: list[Node] = field(default_factory=list)
    rect: Rect | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id == ROOT_PARENT_ID
