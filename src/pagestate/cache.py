"""DocumentCache: LRU cache of parsed and cleaned documents keyed by HTML.

Each ``DocumentCache`` instance owns its own ``LRUCache``; two instances never
share entries.  Access to the LRU is guarded by a lock, parsing itself runs
outside of it, so two threads missing on the same HTML may both parse it and
the later result wins.

Example::

    from pagestate.cache import DocumentCache

    cache = DocumentCache(max_size=64)
    doc = cache.get("<html><body><p>x</p></body></html>")
    doc is cache.get("<html><body><p>x</p></body></html>")   # True
"""

from __future__ import annotations

import threading

from cachetools import LRUCache

from pagestate.tree.builder import DocumentBuilder
from pagestate.tree.nodes import Document
from pagestate.tree.normalizer import DomCleaner

__all__ = ["DocumentCache"]


class DocumentCache:
    """LRU-backed HTML to Document cache.

    Args:
        max_size: Maximum number of documents held in memory.  Defaults to
            128; the least-recently-used entry is silently evicted.
        builder:  HTML parser, ``DocumentBuilder()`` by default.
        cleaner:  Structural cleaner applied after parsing, ``DomCleaner()``
            by default.
    """

    def __init__(
        self,
        max_size: int = 128,
        builder: DocumentBuilder | None = None,
        cleaner: DomCleaner | None = None,
    ) -> None:
        self._cache: LRUCache[str, Document] = LRUCache(maxsize=max_size)
        self._lock = threading.Lock()
        self._builder = builder if builder is not None else DocumentBuilder()
        self._cleaner = cleaner if cleaner is not None else DomCleaner()

    @property
    def max_size(self) -> int:
        return int(self._cache.maxsize)

    @property
    def curr_size(self) -> int:
        with self._lock:
            return int(self._cache.currsize)

    def get(self, html: str) -> Document:
        """Return the cleaned document of ``html``, parsing it on a miss."""
        with self._lock:
            cached = self._cache.get(html)
        if cached is not None:
            return cached
        document = self._cleaner.clean(self._builder.build(html))
        with self._lock:
            self._cache[html] = document
        return document

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
