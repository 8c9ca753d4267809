"""pagestate - state equivalence and page fragmentation for web crawlers."""

from __future__ import annotations

from pagestate.algorithm.config import EquivalenceConfig, HybridPolicy, SSIMConfig
from pagestate.api import compare, diff_nodes, is_equivalent, tree_distance
from pagestate.comparator import TreeComparator
from pagestate.factories import (
    HybridStateFactory,
    ImageHashStateFactory,
    SSIMStateFactory,
    StructuralStateFactory,
)
from pagestate.fragments import (
    Fragment,
    FragmentBuilder,
    FragmentTree,
    UsefulnessPolicy,
)
from pagestate.geometry import Rect, Rectangle
from pagestate.result import ComparisonResult
from pagestate.state import CandidateElement, StateVertex
from pagestate.strategies import StrategyKind
from pagestate.tree import Document, DocumentBuilder, Node

__version__: str = "0.1.0"
__all__: list[str] = [
    "CandidateElement",
    "ComparisonResult",
    "Document",
    "DocumentBuilder",
    "EquivalenceConfig",
    "Fragment",
    "FragmentBuilder",
    "FragmentTree",
    "HybridPolicy",
    "HybridStateFactory",
    "ImageHashStateFactory",
    "Node",
    "Rect",
    "Rectangle",
    "SSIMConfig",
    "SSIMStateFactory",
    "StateVertex",
    "StrategyKind",
    "StructuralStateFactory",
    "TreeComparator",
    "compare",
    "diff_nodes",
    "is_equivalent",
    "tree_distance",
]
