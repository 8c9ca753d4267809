"""SSIMStrategy: equal iff the screenshots' SSIM score >= threshold.

Both screenshots are converted to grayscale; the second is resized to the
size of the first before scoring with ``skimage.metrics.structural_similarity``.
``distance`` reports ``1 - score``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from skimage.metrics import structural_similarity

from pagestate.algorithm.config import SSIMConfig
from pagestate.strategies.base import StrategyKind

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.state import StateVertex

logger = logging.getLogger(__name__)

__all__ = ["SSIMPayload", "SSIMStrategy", "ssim_score"]


def ssim_score(image_a: Image.Image, image_b: Image.Image) -> float:
    """SSIM of two images in [0, 1] (1.0 for identical images).

    Raises:
        ValueError: If the images are too small for the SSIM window.
    """
    gray_a = image_a.convert("L")
    gray_b = image_b.convert("L")
    if gray_b.size != gray_a.size:
        logger.debug("Resizing %s to %s for SSIM", gray_b.size, gray_a.size)
        gray_b = gray_b.resize(gray_a.size)
    array_a = np.asarray(gray_a, dtype=np.float64)
    array_b = np.asarray(gray_b, dtype=np.float64)
    return float(structural_similarity(array_a, array_b, data_range=255.0))


@dataclass(frozen=True, slots=True)
class SSIMPayload:
    """Payload of SSIM states: the screenshot."""

    image: Image.Image


class SSIMStrategy:
    """Screenshot comparison by structural similarity.

    Args:
        config: Threshold in [0, 1].  Defaults to ``SSIMConfig()`` (1.0).
    """

    kind = StrategyKind.SSIM

    def __init__(self, config: SSIMConfig | None = None) -> None:
        self.config = config if config is not None else SSIMConfig()

    def distance(self, a: StateVertex, b: StateVertex) -> float:
        return 1.0 - ssim_score(a.payload.image, b.payload.image)

    def equals(self, a: StateVertex, b: StateVertex) -> bool:
        try:
            score = ssim_score(a.payload.image, b.payload.image)
        except Exception:
            logger.error(
                "Error computing SSIM between %s and %s", a.name, b.name, exc_info=True
            )
            return False
        return score >= self.config.threshold
