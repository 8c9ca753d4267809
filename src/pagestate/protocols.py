"""Protocols for the collaborators this package consumes but does not own.

Every extension point is a structural ``typing.Protocol``: a browser driver,
a visual segmentation pass, a fragment usefulness policy, a visibility
predicate and an image-hash family.  Any object with conformant methods
passes ``isinstance`` checks; no inheritance required.

Example::

    from pagestate.protocols import Segmenter

    class FixedSegmenter:
        def __init__(self, rectangles):
            self.rectangles = rectangles

        def segment(self, image, document):
            return self.rectangles

    assert isinstance(FixedSegmenter([]), Segmenter)  # True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.fragments.fragment import Fragment
    from pagestate.geometry import Rect, Rectangle
    from pagestate.tree.nodes import Document, Node


@runtime_checkable
class Driver(Protocol):
    """Browser automation capability.

    ``measure_element_rect`` is the only call made during fragment building;
    it may be slow and is never invoked while a state lock is held.
    """

    def get_document(self) -> Document: ...

    def element_exists(self, identification: Any) -> bool: ...

    def take_screenshot(self, timeout_ms: int) -> Image.Image: ...

    def measure_element_rect(self, node: Node) -> Rect | None: ...


@runtime_checkable
class Segmenter(Protocol):
    """Visual segmentation pass producing a flat rectangle set with parent ids."""

    def segment(self, image: Image.Image, document: Document) -> list[Rectangle]: ...


@runtime_checkable
class UsefulnessPredicate(Protocol):
    """Decides whether a fragment is large enough to be worth tracking."""

    def __call__(self, fragment: Fragment) -> bool: ...


@runtime_checkable
class DisplayPredicate(Protocol):
    """Decides whether a DOM node is rendered visibly."""

    def __call__(self, node: Node) -> bool: ...


@runtime_checkable
class HashFamily(Protocol):
    """A perceptual image-hash family.

    ``compare`` returns a family-specific score; two hashes are equivalent when
    that score lies in ``[min_threshold, max_threshold]`` or equals
    ``perfect_match`` exactly.
    """

    name: str
    min_threshold: float
    max_threshold: float
    perfect_match: float

    def hash(self, image: Image.Image) -> Any: ...

    def compare(self, hash_a: Any, hash_b: Any) -> float: ...
