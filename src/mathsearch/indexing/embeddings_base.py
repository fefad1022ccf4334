"""
Embedding provider interface.
=============================

Everything above the providers (generator, indexer, search) depends on
`EmbeddingProvider` only, so picking Ollama or Gemini is a settings change.
"""

from abc import ABC, abstractmethod
from typing import Optional

from mathsearch.shared.config import Settings, get_settings
from mathsearch.shared.logging import get_logger

logger = get_logger(__name__)

PROVIDER_NAMES = ("ollama", "gemini")


# ─────────────────────────────────────────────────────────────────────────────
# Interface
# ─────────────────────────────────────────────────────────────────────────────


class EmbeddingProvider(ABC):
    """
    One embedding model behind one upstream service.

    Subclasses turn a single text into a vector with `embed_text` and raise
    EmbeddingError when the service is down or answers without a vector.
    They do not check the vector width; `EmbeddingGenerator` does.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short identifier, e.g. "ollama"."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model the provider sends requests for."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Width of the vectors this model produces."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Return the embedding of `text`."""

    def is_available(self) -> bool:
        """Embed a throwaway text and check the vector width."""
        try:
            sample = self.embed_text("availability check")
        except Exception as e:
            logger.warning(f"{self.provider_name} embeddings unavailable: {e}")
            return False
        return len(sample) == self.dimensions

    def get_info(self) -> dict:
        return {
            "provider": self.provider_name,
            "model": self.model_name,
            "dimensions": self.dimensions,
            "available": self.is_available(),
        }


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def get_embedding_provider(
    provider_name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> EmbeddingProvider:
    """
    Build the provider named by `provider_name`, or the configured one.

    Raises:
        ValueError: For a name outside PROVIDER_NAMES

    Example:
        >>> provider = get_embedding_provider("ollama")
        >>> provider.embed_text("What is 5 + 3?")[:3]
    """
    settings = settings or get_settings()
    name = (provider_name or settings.get_effective_embedding_provider()).strip().lower()

    if name not in PROVIDER_NAMES:
        raise ValueError(
            f"Unknown embedding provider '{name}' (expected one of: {', '.join(PROVIDER_NAMES)})"
        )

    provider: EmbeddingProvider
    if name == "gemini":
        from mathsearch.indexing.embeddings_gemini import GeminiEmbeddingProvider

        provider = GeminiEmbeddingProvider(settings=settings)
    else:
        from mathsearch.indexing.embeddings_ollama import OllamaEmbeddingProvider

        provider = OllamaEmbeddingProvider(settings=settings)

    logger.info(
        f"Embedding with {provider.provider_name}/{provider.model_name} "
        f"({provider.dimensions} dims)"
    )
    return provider
