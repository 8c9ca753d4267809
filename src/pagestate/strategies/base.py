"""StrategyKind, the EquivalenceStrategy protocol and the document payload.

Every state carries exactly one strategy object and one payload.  The
strategy reads whatever it needs from the payloads of the two states it
compares; it never keeps per-state data of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.fragments.fragment import FragmentTree
    from pagestate.state import StateVertex
    from pagestate.tree.nodes import Document

__all__ = ["DocumentPayload", "EquivalenceStrategy", "StrategyKind", "require_document"]


class StrategyKind(StrEnum):
    """Discriminator of the comparison strategy a state was built with.

    - STRUCTURAL -> "structural" : tree edit distance over the cleaned DOM
    - HYBRID     -> "hybrid"     : edit distance with dynamic-fragment masking
    - IMAGE_HASH -> "image_hash" : perceptual hash of the screenshot
    - SSIM       -> "ssim"       : structural similarity of the screenshot
    """

    STRUCTURAL = auto()
    HYBRID = auto()
    IMAGE_HASH = auto()
    SSIM = auto()


@runtime_checkable
class EquivalenceStrategy(Protocol):
    """Structural protocol for comparison strategies.

    ``distance`` and ``equals`` may raise; ``StateVertex`` turns any failure
    into "not equal" / ``-1.0``.
    """

    kind: StrategyKind

    def distance(self, a: StateVertex, b: StateVertex) -> float: ...

    def equals(self, a: StateVertex, b: StateVertex) -> bool: ...


@dataclass(slots=True)
class DocumentPayload:
    """Payload of document-backed states (structural and hybrid).

    Attributes:
        document:   The cleaned document tree.
        screenshot: Screenshot the fragments were segmented from, if any.
        fragments:  Published fragment tree, None until fragmented.
    """

    document: Document
    screenshot: Image.Image | None = None
    fragments: FragmentTree | None = None


def require_document(state: StateVertex) -> Document:
    """The state's document, or ValueError when it has none."""
    document = state.document
    if document is None:
        msg = f"State {state.name!r} carries no document"
        raise ValueError(msg)
    return document
