"""strategies subpackage: pluggable state-equivalence strategies.

Re-exports:
- StrategyKind / EquivalenceStrategy: discriminator and protocol
- StructuralStrategy: tree edit distance <= threshold
- HybridStrategy: structural distance with dynamic-fragment masking
- ImageHashStrategy + hash families: perceptual screenshot hashes
- SSIMStrategy: structural similarity of screenshots
"""

from pagestate.strategies.base import DocumentPayload, EquivalenceStrategy, StrategyKind
from pagestate.strategies.hybrid import HybridStrategy
from pagestate.strategies.image_hash import (
    ImageHashFamily,
    ImageHashPayload,
    ImageHashStrategy,
    average_hash_family,
    color_hash_family,
    difference_hash_family,
    perceptual_hash_family,
    wavelet_hash_family,
)
from pagestate.strategies.ssim import SSIMPayload, SSIMStrategy, ssim_score
from pagestate.strategies.structural import StructuralStrategy

__all__ = [
    "DocumentPayload",
    "EquivalenceStrategy",
    "HybridStrategy",
    "ImageHashFamily",
    "ImageHashPayload",
    "ImageHashStrategy",
    "SSIMPayload",
    "SSIMStrategy",
    "StrategyKind",
    "StructuralStrategy",
    "average_hash_family",
    "color_hash_family",
    "difference_hash_family",
    "perceptual_hash_family",
    "ssim_score",
    "wavelet_hash_family",
]
