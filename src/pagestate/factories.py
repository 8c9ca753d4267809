"""State factories: build a ``StateVertex`` with the payload of one strategy.

Every factory exposes ``new_state(id, url, name, dom, stripped_dom, driver)``.
Document-backed factories parse and clean the stripped DOM; screenshot-backed
factories ask the driver for a screenshot.  Each factory owns one strategy
object shared by all states it creates.

Example::

    from pagestate.factories import StructuralStateFactory

    factory = StructuralStateFactory()
    s1 = factory.new_state(1, "http://x", "index", html, strip_dom(html))
    s2 = factory.new_state(2, "http://x", "state2", html, strip_dom(html))
    s1.equals(s2)   # True
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pagestate.algorithm.config import EquivalenceConfig, SSIMConfig
from pagestate.state import StateVertex
from pagestate.strategies.base import DocumentPayload, EquivalenceStrategy
from pagestate.strategies.hybrid import HybridStrategy
from pagestate.strategies.image_hash import (
    ImageHashFamily,
    ImageHashPayload,
    ImageHashStrategy,
    perceptual_hash_family,
)
from pagestate.strategies.ssim import SSIMPayload, SSIMStrategy
from pagestate.strategies.structural import StructuralStrategy
from pagestate.tree.builder import DocumentBuilder
from pagestate.tree.normalizer import DomCleaner

if TYPE_CHECKING:
    from PIL import Image

    from pagestate.protocols import Driver

logger = logging.getLogger(__name__)

__all__ = [
    "HybridStateFactory",
    "ImageHashStateFactory",
    "SSIMStateFactory",
    "StructuralStateFactory",
]

DEFAULT_SCREENSHOT_TIMEOUT_MS = 1000


class StructuralStateFactory:
    """States compared by tree edit distance.

    Args:
        config:  Equivalence configuration for the shared strategy.
        builder: HTML to Document converter.
        cleaner: Structural cleaner applied to every parsed document.
    """

    def __init__(
        self,
        config: EquivalenceConfig | None = None,
        builder: DocumentBuilder | None = None,
        cleaner: DomCleaner | None = None,
    ) -> None:
        self.config = config if config is not None else EquivalenceConfig()
        self.builder = builder if builder is not None else DocumentBuilder()
        self.cleaner = cleaner if cleaner is not None else DomCleaner()
        self.strategy: EquivalenceStrategy = self._make_strategy()

    def _make_strategy(self) -> EquivalenceStrategy:
        return StructuralStrategy(self.config)

    def new_state(
        self,
        id: int,
        url: str | None,
        name: str,
        dom: str,
        stripped_dom: str,
        driver: Driver | None = None,
    ) -> StateVertex:
        t0 = time.perf_counter()
        document = self.cleaner.clean(self.builder.build(stripped_dom))
        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        logger.info("Took %.1f ms to parse DOM of %s", elapsed_ms, name)
        return StateVertex(
            id, url, name, dom, stripped_dom, self.strategy, DocumentPayload(document)
        )


class HybridStateFactory(StructuralStateFactory):
    """States compared by edit distance with dynamic-fragment masking."""

    def _make_strategy(self) -> EquivalenceStrategy:
        return HybridStrategy(self.config)


def _screenshot(driver: Driver | None, timeout_ms: int, name: str) -> Image.Image:
    if driver is None:
        msg = f"A driver is required to screenshot state {name!r}"
        raise ValueError(msg)
    return driver.take_screenshot(timeout_ms)


class ImageHashStateFactory:
    """States compared by a perceptual hash of their screenshot.

    Args:
        family:     Hash family; defaults to an exact-match perceptual hash.
        timeout_ms: Screenshot timeout handed to the driver.
    """

    def __init__(
        self,
        family: ImageHashFamily | None = None,
        timeout_ms: int = DEFAULT_SCREENSHOT_TIMEOUT_MS,
    ) -> None:
        self.family = family if family is not None else perceptual_hash_family()
        self.timeout_ms = timeout_ms
        self.strategy = ImageHashStrategy()

    def new_state(
        self,
        id: int,
        url: str | None,
        name: str,
        dom: str,
        stripped_dom: str,
        driver: Driver | None = None,
    ) -> StateVertex:
        """Raises ValueError when ``driver`` is None."""
        image = _screenshot(driver, self.timeout_ms, name)
        payload = ImageHashPayload(self.family.hash(image), self.family)
        return StateVertex(id, url, name, dom, stripped_dom, self.strategy, payload)

    def __repr__(self) -> str:
        return f"ImageHashStateFactory({self.family.name})"


class SSIMStateFactory:
    """States compared by SSIM of their screenshot."""

    def __init__(
        self,
        config: SSIMConfig | None = None,
        timeout_ms: int = DEFAULT_SCREENSHOT_TIMEOUT_MS,
    ) -> None:
        self.strategy = SSIMStrategy(config)
        self.timeout_ms = timeout_ms

    def new_state(
        self,
        id: int,
        url: str | None,
        name: str,
        dom: str,
        stripped_dom: str,
        driver: Driver | None = None,
    ) -> StateVertex:
        image = _screenshot(driver, self.timeout_ms, name)
        return StateVertex(
            id, url, name, dom, stripped_dom, self.strategy, SSIMPayload(image)
        )
