"""TreeComparator: orchestrator that wires DocumentCache + DiffExtractor.

Inputs are HTML strings or already parsed ``Document`` objects.  Strings go
through a per-instance ``DocumentCache`` so comparing one page against many
parses it once.
"""

from __future__ import annotations

import time

from pagestate.algorithm.config import EquivalenceConfig
from pagestate.algorithm.diff import DiffExtractor, classify_changes
from pagestate.algorithm.extractor import TreeExtractor
from pagestate.cache import DocumentCache
from pagestate.result import ComparisonResult
from pagestate.tree.nodes import Document, Node, skeleton_xpath

__all__ = ["DocumentLike", "TreeComparator"]

DocumentLike = str | Document


class TreeComparator:
    """Orchestrator for structural document comparison.

    Example::

        from pagestate.comparator import TreeComparator

        cmp = TreeComparator()
        result = cmp.compare("<div><span>x</span></div>", "<div><span>y</span></div>")
        print(result.distance)        # 1.0
        print(result.changed_left)    # ['/DIV[1]/SPAN[1]/text()[1]']
    """

    def __init__(
        self,
        config: EquivalenceConfig | None = None,
        max_cache_size: int = 128,
    ) -> None:
        """Initialise the comparator.

        Args:
            config: Labeling options and threshold.  Defaults to
                ``EquivalenceConfig()``.
            max_cache_size: Maximum number of parsed documents held in the
                per-instance LRU cache.  Infrastructure only, not part of
                ``EquivalenceConfig``.
        """
        self._config = config if config is not None else EquivalenceConfig()
        self._documents = DocumentCache(max_size=max_cache_size)
        self._extractor = TreeExtractor(
            visual_data=self._config.visual_data,
            include_text=self._config.include_text,
            bucket_px=self._config.bucket_px,
        )
        self._diff = DiffExtractor(self._extractor)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compare(self, left: DocumentLike, right: DocumentLike) -> ComparisonResult:
        """Compare two documents and return a rich ComparisonResult."""
        t0 = time.perf_counter()
        doc_left = self.document(left)
        doc_right = self.document(right)

        distance, mapping, post1, post2 = self._diff.align(doc_left, doc_right)
        changed_left, changed_right = classify_changes(
            post1, post2, mapping, self._extractor.node_label
        )

        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        return ComparisonResult(
            distance=distance,
            alignment=mapping,
            changed_left=[skeleton_xpath(n) for n in changed_left],
            changed_right=[skeleton_xpath(n) for n in changed_right],
            computation_time_ms=elapsed_ms,
        )

    def tree_distance(self, left: DocumentLike, right: DocumentLike) -> float:
        return self._diff.distance(self.document(left), self.document(right))

    def is_equivalent(self, left: DocumentLike, right: DocumentLike) -> bool:
        """True when the edit distance is within ``config.threshold``."""
        return self.tree_distance(left, right) <= self._config.threshold

    def diff_nodes(self, left: DocumentLike, right: DocumentLike) -> list[Node]:
        """Left-side nodes whose tag or text changed (see ``DiffExtractor``)."""
        return self._diff.diff_nodes(self.document(left), self.document(right))

    def document(self, value: DocumentLike) -> Document:
        if isinstance(value, Document):
            return value
        if isinstance(value, str):
            return self._documents.get(value)
        msg = f"Expected an HTML string or Document, got {type(value).__name__}"
        raise TypeError(msg)
