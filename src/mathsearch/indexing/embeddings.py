"""
Embedding Generator Module - Validated, cached embedding generation.
====================================================================

Wraps an EmbeddingProvider with:
- Dimension validation (wrong-sized vectors are rejected, never cached)
- A bounded FIFO cache keyed by exact text
- Sequential, fail-fast batch embedding
"""

from typing import Optional

from tqdm import tqdm

from mathsearch.indexing.embedding_cache import EmbeddingCache
from mathsearch.indexing.embeddings_base import EmbeddingProvider
from mathsearch.shared.exceptions import EmbeddingError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import CacheStats
from mathsearch.shared.utils import truncate_text

logger = get_logger(__name__)

DEFAULT_DIMENSIONS = 768


class EmbeddingGenerator:
    """
    Turns text into fixed-dimension embeddings through a provider.

    Example:
        >>> generator = EmbeddingGenerator(provider, EmbeddingCache(1000))
        >>> vector = generator.generate_embedding("What is 5 + 3?")
        >>> len(vector)
        768
        >>> generator.get_cache_stats().size
        1
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        dimensions: int = DEFAULT_DIMENSIONS,
    ):
        """
        Initialize the generator.

        Args:
            provider: Upstream embedding provider
            cache: Cache to use (a new 1000-entry cache if None)
            dimensions: Required embedding length
        """
        self._provider = provider
        self._cache = cache if cache is not None else EmbeddingCache()
        self._dimensions = dimensions

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def generate_embedding(self, text: str) -> list[float]:
        """
        Generate (or fetch from cache) the embedding for ``text``.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of exactly ``dimensions`` floats

        Raises:
            EmbeddingError: If the provider fails, returns nothing, or returns
                a vector of the wrong length
        """
        cached = self._cache.get(text)
        if cached is not None:
            logger.debug(f"Cache hit for text: {truncate_text(text)}")
            return cached

        try:
            embedding = self._provider.embed_text(text)
        except Exception as e:
            logger.error(f"Failed to generate embedding for text: {truncate_text(text)}")
            raise EmbeddingError(
                f"Failed to generate embedding: {str(e) or 'Unknown error'}", text=text
            ) from e

        if not embedding:
            raise EmbeddingError("Failed to generate embedding: provider returned no vector", text=text)

        if len(embedding) != self._dimensions:
            raise EmbeddingError(
                f"Failed to generate embedding: invalid embedding dimensions: "
                f"expected {self._dimensions}, got {len(embedding)}",
                text=text,
            )

        evicted = self._cache.put(text, embedding)
        if evicted is not None:
            logger.debug(f"Evicted oldest cache entry: {truncate_text(evicted)}")

        logger.debug(
            f"Generated {len(embedding)}-dimensional embedding for text: {truncate_text(text)}"
        )
        return embedding

    def generate_batch_embeddings(
        self,
        texts: list[str],
        show_progress: bool = False,
    ) -> list[list[float]]:
        """
        Embed texts one at a time, in input order.

        The first failure aborts the whole call; no partial result is returned.

        Args:
            texts: Texts to embed
            show_progress: Whether to show a progress bar

        Returns:
            One embedding per input text, positionally aligned
        """
        if not texts:
            return []

        iterator = tqdm(texts, desc="Embedding") if show_progress else texts

        embeddings = [self.generate_embedding(text) for text in iterator]

        logger.info(f"Generated {len(embeddings)} embeddings in batch")
        return embeddings

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Embedding cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()
