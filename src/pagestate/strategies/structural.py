"""StructuralStrategy: equal iff tree edit distance <= threshold."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pagestate.algorithm.config import EquivalenceConfig
from pagestate.algorithm.diff import DiffExtractor
from pagestate.algorithm.extractor import TreeExtractor
from pagestate.strategies.base import StrategyKind, require_document

if TYPE_CHECKING:
    from pagestate.state import StateVertex

logger = logging.getLogger(__name__)

__all__ = ["StructuralStrategy"]


class StructuralStrategy:
    """Compares the cleaned document trees of two states.

    With ``config.fast_compare`` on, states whose cached subtree sizes differ
    are declared distinct before the edit distance runs.

    Args:
        config: Thresholds and labeling options.  Defaults to
            ``EquivalenceConfig()``.
    """

    kind = StrategyKind.STRUCTURAL

    def __init__(self, config: EquivalenceConfig | None = None) -> None:
        self.config = config if config is not None else EquivalenceConfig()
        self.extractor = TreeExtractor(
            visual_data=self.config.visual_data,
            include_text=self.config.include_text,
            bucket_px=self.config.bucket_px,
        )
        self.diff = DiffExtractor(self.extractor)

    def distance(self, a: StateVertex, b: StateVertex) -> float:
        return self.diff.distance(require_document(a), require_document(b))

    def equals(self, a: StateVertex, b: StateVertex) -> bool:
        if self.config.fast_compare and self._sizes_differ(a, b):
            return False
        return self.distance(a, b) <= self.config.threshold

    @staticmethod
    def _sizes_differ(a: StateVertex, b: StateVertex) -> bool:
        size_a, size_b = a.size(), b.size()
        if size_a < 0 or size_b < 0:
            logger.error("Cannot fast compare %s and %s: unknown size", a.name, b.name)
            return False
        return size_a != size_b
