"""
Ollama Embeddings Module - Local embeddings via the Ollama HTTP API.
====================================================================

Calls ``POST {base_url}/api/embeddings`` with a fixed model and the prompt
text. The default model, nomic-embed-text, produces 768-dimensional vectors.
"""

from typing import Optional

import requests

from mathsearch.indexing.embeddings_base import EmbeddingProvider
from mathsearch.shared.config import Settings, get_settings
from mathsearch.shared.exceptions import EmbeddingError
from mathsearch.shared.logging import get_logger

logger = get_logger(__name__)


class OllamaEmbeddingProvider(EmbeddingProvider):
    """
    Embedding provider backed by an Ollama server.

    Example:
        >>> provider = OllamaEmbeddingProvider(base_url="http://localhost:11434")
        >>> vector = provider.embed_text("What is 5 + 3?")
        >>> len(vector)
        768
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        dimensions: Optional[int] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the Ollama provider.

        Args:
            base_url: Ollama server URL (defaults to OLLAMA_URL / config)
            model_name: Embedding model name
            timeout: Request timeout in seconds
            dimensions: Expected embedding dimensions
            session: Optional pre-configured requests session
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        ollama_config = settings.embeddings.ollama

        self._base_url = (base_url or settings.get_effective_ollama_url()).rstrip("/")
        self._model_name = model_name or ollama_config.model_name
        self._timeout = timeout if timeout is not None else ollama_config.timeout
        self._dimensions = dimensions or settings.embeddings.dimensions
        self._session = session

        logger.debug(
            f"Ollama provider configured: url={self._base_url}, "
            f"model={self._model_name}, timeout={self._timeout}s"
        )

    @property
    def provider_name(self) -> str:
        return "ollama"

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Content-Type": "application/json"})
        return self._session

    def embed_text(self, text: str) -> list[float]:
        """
        Embed a single text string.

        Raises:
            EmbeddingError: If Ollama is unreachable, answers with an error
                status, or returns no embedding
        """
        url = f"{self._base_url}/api/embeddings"

        try:
            response = self.session.post(
                url,
                json={"model": self._model_name, "prompt": text},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise EmbeddingError(f"Ollama request to {url} failed: {e}") from e
        except ValueError as e:
            raise EmbeddingError(f"Ollama returned a non-JSON response: {e}") from e

        embedding = payload.get("embedding") if isinstance(payload, dict) else None
        if not embedding:
            raise EmbeddingError("No embedding returned from Ollama")

        return [float(x) for x in embedding]

    def get_info(self) -> dict:
        info = super().get_info()
        info["base_url"] = self._base_url
        return info
