"""EquivalenceConfig, SSIMConfig and HybridPolicy for state comparison.

Both configs are frozen (immutable) dataclasses validated on construction.
They are handed to a strategy when it is created; nothing in the package
reads process-wide flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto


class HybridPolicy(StrEnum):
    """Equality criterion used by the hybrid strategy.

    - DISTANCE:         tree edit distance <= threshold.
    - ALL_HIDDEN:       equal iff every changed node on both sides is hidden.
    - VISIBLE_DISTANCE: edit distance minus hidden changed nodes <= threshold.
    """

    DISTANCE = auto()
    ALL_HIDDEN = auto()
    VISIBLE_DISTANCE = auto()


@dataclass(frozen=True, slots=True)
class EquivalenceConfig:
    """Immutable configuration for the structural and hybrid strategies.

    Attributes:
        threshold: Maximum edit distance for two states to be equal (>= 0).
        visual_data: When True node labels include a color/position bucket.
        include_text: When True text nodes are labeled with their content, so
            a text change costs one relabel.
        bucket_px: Grid size (pixels) used to bucket positions in visual labels.
        fast_compare: When True, states whose cached subtree sizes differ are
            declared distinct without running the edit distance.  Default False.
        mask_dynamic_fragments: When True the hybrid strategy collapses
            subtrees of fragments already known to be dynamic.
        hybrid_policy: Equality criterion of the hybrid strategy.
    """

    threshold: float = 0.0
    visual_data: bool = False
    include_text: bool = True
    bucket_px: int = 50
    fast_compare: bool = False
    mask_dynamic_fragments: bool = True
    hybrid_policy: HybridPolicy = HybridPolicy.DISTANCE

    def __post_init__(self) -> None:
        if self.threshold < 0.0:
            msg = f"threshold must be >= 0.0, got {self.threshold}"
            raise ValueError(msg)
        if self.bucket_px < 1:
            msg = f"bucket_px must be >= 1, got {self.bucket_px}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class SSIMConfig:
    """Immutable configuration for the SSIM strategy.

    Attributes:
        threshold: Minimum SSIM score in [0, 1] for two screenshots to be
            equal.  1.0 demands a perfect match.
    """

    threshold: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            msg = f"threshold must be in [0, 1], got {self.threshold}"
            raise ValueError(msg)
