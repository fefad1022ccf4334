"""
Embedding Cache Module - Bounded FIFO cache for embedding vectors.
==================================================================

Keyed by the exact text string. When full, inserting a new key evicts the
entry that was inserted earliest; reads never change eviction order.
"""

import threading
from collections import OrderedDict
from typing import Optional

from mathsearch.shared.schemas import CacheStats

DEFAULT_MAX_SIZE = 1000


class EmbeddingCache:
    """
    Insertion-ordered, size-bounded map from text to embedding.

    All map operations are serialized by a lock. Callers that miss and then
    compute a value do so outside the lock, so concurrent misses for the same
    text are not coalesced.

    Example:
        >>> cache = EmbeddingCache(max_size=2)
        >>> cache.put("a", [1.0])
        >>> cache.put("b", [2.0])
        >>> cache.put("c", [3.0])  # evicts "a"
        >>> "a" in cache
        False
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")

        self._max_size = max_size
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, text: str) -> Optional[list[float]]:
        """Return a copy of the cached vector for ``text``, or None."""
        with self._lock:
            cached = self._entries.get(text)
        return None if cached is None else list(cached)

    def put(self, text: str, embedding: list[float]) -> Optional[str]:
        """
        Store a vector, evicting the oldest entry if the cache is full.

        Re-putting an existing key replaces its value in place and keeps its
        original insertion position.

        Returns:
            The evicted key, if any
        """
        with self._lock:
            if text in self._entries:
                self._entries[text] = list(embedding)
                return None

            evicted = None
            if len(self._entries) >= self._max_size:
                evicted, _ = self._entries.popitem(last=False)

            self._entries[text] = list(embedding)
            return evicted

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Keys in insertion order (oldest first)."""
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._entries), max_size=self._max_size)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._entries
