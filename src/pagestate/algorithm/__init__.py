"""algorithm subpackage: public API for tree edit distance and diffing.

Import from this module (not from sub-modules directly) to stay on the stable
public interface.

Example::

    from pagestate.algorithm import DiffExtractor, EditDistanceEngine, TreeExtractor

    extractor = TreeExtractor()
    engine = EditDistanceEngine()
    distance = engine.compute_edit_distance(
        extractor.labeled_tree(doc_a.body), extractor.labeled_tree(doc_b.body)
    )
"""

from __future__ import annotations

from pagestate.algorithm.config import EquivalenceConfig, HybridPolicy, SSIMConfig
from pagestate.algorithm.costs import CostModel, UnitCostModel
from pagestate.algorithm.diff import DiffExtractor, classify_changes
from pagestate.algorithm.extractor import LabeledNode, TreeExtractor
from pagestate.algorithm.ted import EditDistanceEngine, Mapping

__all__ = [
    "CostModel",
    "DiffExtractor",
    "EditDistanceEngine",
    "EquivalenceConfig",
    "HybridPolicy",
    "LabeledNode",
    "Mapping",
    "SSIMConfig",
    "TreeExtractor",
    "UnitCostModel",
    "classify_changes",
]
