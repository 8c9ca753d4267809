"""Perceptual image-hash families and ImageHashStrategy.

A family wraps one ``imagehash`` function.  ``compare`` is the Hamming
distance between two hashes; ``max_raw`` is the number of bits in a hash, so
``threshold_coefficient`` expresses the tolerated distance as a share of the
hash length (0.0 demands identical hashes).

Example::

    from pagestate.strategies.image_hash import perceptual_hash_family

    family = perceptual_hash_family(threshold_coefficient=0.1)
    h1, h2 = family.hash(image_a), family.hash(image_b)
    family.compare(h1, h2)   # Hamming distance, equivalent when <= 6.4
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

import imagehash

from pagestate.strategies.base import StrategyKind

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.protocols import HashFamily
    from pagestate.state import StateVertex

__all__ = [
    "ImageHashFamily",
    "ImageHashPayload",
    "ImageHashStrategy",
    "average_hash_family",
    "color_hash_family",
    "difference_hash_family",
    "perceptual_hash_family",
    "wavelet_hash_family",
]

# colorhash: 2 (black/gray fractions) + 6 hue bins for faint and 6 for bright
_COLOR_HASH_SEGMENTS = 14


@dataclass(frozen=True, slots=True)
class ImageHashFamily:
    """One hash function with its equivalence window.

    Attributes:
        name:                  Family name, e.g. ``"phash"``.
        hasher:                ``image -> imagehash.ImageHash``.
        max_raw:               Maximum raw distance (bits per hash).
        threshold_coefficient: Share of ``max_raw`` tolerated, in [0, 1].
        min_threshold:         Lower end of the equivalence window.
        perfect_match:         Distance reported for identical hashes.
    """

    name: str
    hasher: Callable[[Image.Image], imagehash.ImageHash]
    max_raw: int
    threshold_coefficient: float = 0.0
    min_threshold: float = 0.0
    perfect_match: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.threshold_coefficient <= 1.0:
            msg = (
                "threshold_coefficient must be in [0, 1], "
                f"got {self.threshold_coefficient}"
            )
            raise ValueError(msg)

    @property
    def max_threshold(self) -> float:
        return self.threshold_coefficient * self.max_raw

    def hash(self, image: Image.Image) -> imagehash.ImageHash:
        return self.hasher(image)

    def compare(self, hash_a: Any, hash_b: Any) -> float:
        return float(hash_a - hash_b)


def average_hash_family(
    threshold_coefficient: float = 0.0, hash_size: int = 8
) -> ImageHashFamily:
    return ImageHashFamily(
        f"ahash_{threshold_coefficient}",
        partial(imagehash.average_hash, hash_size=hash_size),
        hash_size * hash_size,
        threshold_coefficient,
    )


def perceptual_hash_family(
    threshold_coefficient: float = 0.0, hash_size: int = 8
) -> ImageHashFamily:
    return ImageHashFamily(
        f"phash_{threshold_coefficient}",
        partial(imagehash.phash, hash_size=hash_size),
        hash_size * hash_size,
        threshold_coefficient,
    )


def difference_hash_family(
    threshold_coefficient: float = 0.0, hash_size: int = 8
) -> ImageHashFamily:
    return ImageHashFamily(
        f"dhash_{threshold_coefficient}",
        partial(imagehash.dhash, hash_size=hash_size),
        hash_size * hash_size,
        threshold_coefficient,
    )


def wavelet_hash_family(
    threshold_coefficient: float = 0.0, hash_size: int = 8
) -> ImageHashFamily:
    """Wavelet hash; ``hash_size`` must be a power of two."""
    return ImageHashFamily(
        f"whash_{threshold_coefficient}",
        partial(imagehash.whash, hash_size=hash_size),
        hash_size * hash_size,
        threshold_coefficient,
    )


def color_hash_family(
    threshold_coefficient: float = 0.0, binbits: int = 3
) -> ImageHashFamily:
    return ImageHashFamily(
        f"colorhash_{threshold_coefficient}",
        partial(imagehash.colorhash, binbits=binbits),
        _COLOR_HASH_SEGMENTS * binbits,
        threshold_coefficient,
    )


@dataclass(frozen=True, slots=True)
class ImageHashPayload:
    """Payload of image-hash states: the screenshot hash and its family."""

    hash_value: Any
    family: HashFamily


class ImageHashStrategy:
    """Equal iff the hash distance lies in the family's window.

    The family of the first state of the pair is used for both.
    """

    kind = StrategyKind.IMAGE_HASH

    def distance(self, a: StateVertex, b: StateVertex) -> float:
        payload_a: ImageHashPayload = a.payload
        payload_b: ImageHashPayload = b.payload
        return payload_a.family.compare(payload_a.hash_value, payload_b.hash_value)

    def in_threshold(self, a: StateVertex, b: StateVertex) -> bool:
        family = a.payload.family
        return family.min_threshold <= self.distance(a, b) <= family.max_threshold

    def equals(self, a: StateVertex, b: StateVertex) -> bool:
        return (
            self.in_threshold(a, b)
            or self.distance(a, b) == a.payload.family.perfect_match
        )
