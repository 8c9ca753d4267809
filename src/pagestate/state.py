"""StateVertex: one observed browser state and its comparison entry point.

A single value type for every comparison strategy.  The state carries its
identity (id, url, name, raw and stripped DOM), its candidate interactive
elements, a strategy object discriminated by ``StrategyKind`` and a
strategy-specific payload.  ``equals`` and ``distance`` never raise:

- two states with the same id are always equal;
- states built with different strategy kinds are never equal (distance -1);
- the pair is put in canonical order before dispatch, so ``a.equals(b)`` and
  ``b.equals(a)`` run the same computation;
- any failure is logged and reported as not equal / ``-1.0``.

Lazy caches (the subtree size) are recomputed idempotently without locks.
Fragment construction runs on a private tree and is published under the
state's lock; driver calls never happen while the lock is held.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pagestate.algorithm.diff import DiffExtractor
from pagestate.fragments.builder import FragmentBuilder
from pagestate.fragments.dynamic import DynamicFragmentDetector
from pagestate.fragments.export import export_fragments
from pagestate.strategies.base import EquivalenceStrategy, StrategyKind
from pagestate.tree.nodes import Node

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.fragments.fragment import Fragment, FragmentTree
    from pagestate.geometry import Rectangle
    from pagestate.protocols import Driver, Segmenter, UsefulnessPredicate
    from pagestate.tree.nodes import Document

logger = logging.getLogger(__name__)

__all__ = ["CandidateElement", "StateVertex", "StrategyKind"]


@dataclass(eq=False, slots=True)
class CandidateElement:
    """An interactive element of a state.

    Attributes:
        node:                    The element's DOM node.
        identification:          Driver-specific locator (XPath, id, ...).
        closest_fragment_id:     Cached answer of the visual closest-fragment query.
        closest_dom_fragment_id: Cached answer of the DOM closest-fragment query.
    """

    node: Node
    identification: Any = None
    closest_fragment_id: int | None = None
    closest_dom_fragment_id: int | None = None


class StateVertex:
    """One discovered browser state.

    Args:
        id:                 Unique state id.
        url:                URL the state was observed at.
        name:               Human-readable name (also used for export folders).
        dom:                Raw document string.
        stripped_dom:       Cosmetically normalized document string.
        strategy:           Comparison strategy shared by states of one kind.
        payload:            Strategy-specific data (document, hash, image).
        candidate_elements: Interactive elements found on the page.
    """

    def __init__(
        self,
        id: int,
        url: str | None,
        name: str,
        dom: str,
        stripped_dom: str,
        strategy: EquivalenceStrategy,
        payload: Any,
        candidate_elements: Iterable[CandidateElement] | None = None,
    ) -> None:
        self.id = id
        self.url = url
        self.name = name
        self.dom = dom
        self.stripped_dom = stripped_dom
        self.strategy = strategy
        self.payload = payload
        self.candidate_elements: list[CandidateElement] = list(
            candidate_elements or []
        )
        self._size: int | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"StateVertex(id={self.id!r}, name={self.name!r}, kind={self.kind})"

    def __hash__(self) -> int:
        return hash(self.stripped_dom)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    @property
    def kind(self) -> StrategyKind:
        return self.strategy.kind

    def equals(self, other: object) -> bool:
        """True when both states represent the same page state."""
        if not isinstance(other, StateVertex):
            return False
        if self.id == other.id:
            return True
        if self.kind != other.kind:
            return False
        first, second = self._canonical(other)
        try:
            return bool(first.strategy.equals(first, second))
        except Exception:
            logger.error(
                "Error calculating distance between %s and %s",
                first.name,
                second.name,
                exc_info=True,
            )
            return False

    def distance(self, other: object) -> float:
        """Strategy distance to ``other``; -1.0 when not comparable."""
        if not isinstance(other, StateVertex):
            return -1.0
        if self.id == other.id:
            return 0.0
        if self.kind != other.kind:
            return -1.0
        first, second = self._canonical(other)
        try:
            return float(first.strategy.distance(first, second))
        except Exception:
            logger.error(
                "Error calculating distance between %s and %s",
                first.name,
                second.name,
                exc_info=True,
            )
            return -1.0

    def in_threshold(self, other: object) -> bool:
        """True when the distance lies inside the strategy's tolerance window.

        Unlike :meth:`equals`, a perfect match outside the window does not
        count. Strategies without a window always answer False.
        """
        if not isinstance(other, StateVertex) or self.kind != other.kind:
            return False
        first, second = self._canonical(other)
        check = getattr(first.strategy, "in_threshold", None)
        if check is None:
            return False
        try:
            return bool(check(first, second))
        except Exception:
            logger.error(
                "Error calculating distance between %s and %s",
                first.name,
                second.name,
                exc_info=True,
            )
            return False

    def difference(self, other: StateVertex) -> tuple[list[Node], list[Node]] | None:
        """Changed nodes ``(this side, other side)``; None when not computable."""
        try:
            return self._diff_extractor().changed_nodes(
                self._require_document(), other._require_document()
            )
        except Exception:
            logger.error(
                "Could not compute difference between %s and %s",
                self.name,
                other.name,
                exc_info=True,
            )
            return None

    def _canonical(self, other: StateVertex) -> tuple[StateVertex, StateVertex]:
        if (self.id, self.name) <= (other.id, other.name):
            return self, other
        return other, self

    # ------------------------------------------------------------------
    # Document data
    # ------------------------------------------------------------------

    @property
    def document(self) -> Document | None:
        return getattr(self.payload, "document", None)

    def size(self) -> int:
        """Number of nodes below ``body``; -1 without a document."""
        if self._size is None:
            document = self.document
            self._size = document.subtree_size() if document is not None else -1
        return self._size

    def _require_document(self) -> Document:
        document = self.document
        if document is None:
            msg = f"State {self.name!r} carries no document"
            raise ValueError(msg)
        return document

    def _diff_extractor(self) -> DiffExtractor:
        diff = getattr(self.strategy, "diff", None)
        return diff if isinstance(diff, DiffExtractor) else DiffExtractor()

    # ------------------------------------------------------------------
    # Fragments
    # ------------------------------------------------------------------

    @property
    def fragment_tree(self) -> FragmentTree | None:
        return getattr(self.payload, "fragments", None)

    @property
    def is_fragmented(self) -> bool:
        return self.fragment_tree is not None

    def fragments(self) -> list[Fragment]:
        tree = self.fragment_tree
        return list(tree) if tree is not None else []

    def root_fragment(self) -> Fragment | None:
        tree = self.fragment_tree
        return tree.root if tree is not None else None

    def add_fragments(
        self,
        rectangles: list[Rectangle] | None,
        driver: Driver | None = None,
        usefulness: UsefulnessPredicate | None = None,
    ) -> FragmentTree | None:
        """Build the fragment tree from ``rectangles`` and publish it.

        Nothing happens when ``rectangles`` is None.

        Raises:
            ValueError: If the state carries no document.
        """
        if rectangles is None:
            return self.fragment_tree
        tree = self._build_fragments(rectangles, driver, usefulness)
        with self._lock:
            self.payload.fragments = tree
        return tree

    def fragment_dom(
        self,
        segmenter: Segmenter,
        screenshot: Image.Image,
        driver: Driver | None = None,
        usefulness: UsefulnessPredicate | None = None,
    ) -> Document:
        """Segment ``screenshot`` and fragment the document, at most once.

        Raises:
            ValueError: If the state carries no document.
        """
        document = self._require_document()
        if self.is_fragmented:
            return document
        rectangles = segmenter.segment(screenshot, document)
        tree = self._build_fragments(rectangles, driver, usefulness)
        with self._lock:
            if self.payload.fragments is None:
                self.payload.fragments = tree
                self.payload.screenshot = screenshot
        return document

    def _build_fragments(
        self,
        rectangles: list[Rectangle] | None,
        driver: Driver | None,
        usefulness: UsefulnessPredicate | None,
    ) -> FragmentTree | None:
        builder = FragmentBuilder(
            self.name, self._require_document(), usefulness=usefulness, driver=driver
        )
        return builder.build(rectangles, self.candidate_elements)

    def set_elements_found(self, elements: Iterable[CandidateElement]) -> None:
        """Replace the candidate elements and attribute them to fragments."""
        self.candidate_elements = list(elements)
        tree = self.fragment_tree
        if tree is not None:
            tree.add_candidates(self.candidate_elements)

    def closest_fragment(self, target: Node | CandidateElement) -> Fragment | None:
        tree = self.fragment_tree
        if tree is None:
            return None
        if isinstance(target, CandidateElement):
            return tree.closest_fragment_for(target)
        return tree.closest_fragment(target)

    def closest_dom_fragment(self, target: Node | CandidateElement) -> Fragment | None:
        tree = self.fragment_tree
        if tree is None:
            return None
        if isinstance(target, CandidateElement):
            return tree.closest_dom_fragment_for(target)
        return tree.closest_dom_fragment(target)

    def next_fragment_id(self) -> int:
        tree = self.fragment_tree
        return tree.next_fragment_id() if tree is not None else 0

    def assign_dynamic_fragments(self, reference: StateVertex) -> list[Fragment]:
        """Flag and return fragments whose content differs from ``reference``."""
        detector = DynamicFragmentDetector(self._diff_extractor())
        return detector.assign(self, reference)

    def export_fragments(
        self, output_dir: str | Path, viewport: Image.Image
    ) -> list[Path]:
        tree = self.fragment_tree
        if tree is None:
            return []
        return export_fragments(tree, self.name, output_dir, viewport)
