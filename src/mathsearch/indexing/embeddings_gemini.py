"""
Hosted embeddings through the Google GenAI SDK.
==============================================

Used when no local Ollama daemon is around. Needs a key from Google AI
Studio in GEMINI_API_KEY; the SDK itself is only imported on first use.
"""

from typing import Optional

from mathsearch.indexing.embeddings_base import EmbeddingProvider
from mathsearch.shared.config import Settings, get_settings
from mathsearch.shared.exceptions import EmbeddingError
from mathsearch.shared.logging import get_logger

logger = get_logger(__name__)


# Vector width per model; unknown models fall back to embeddings.dimensions.
KNOWN_MODEL_WIDTHS = {
    "text-embedding-004": 768,
    "embedding-001": 768,
}


class GeminiEmbeddingProvider(EmbeddingProvider):
    """
    Embeds math questions with a Gemini embedding model.

    The task type defaults to SEMANTIC_SIMILARITY, which is what duplicate
    detection compares against.

    Example:
        >>> provider = GeminiEmbeddingProvider(api_key="...")
        >>> vector = provider.embed_text("Sam has 4 bags of 6 marbles.")
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        task_type: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        defaults = settings.embeddings.gemini

        key = api_key or settings.gemini_api_key
        if not key:
            raise ValueError(
                "No Gemini API key configured: export GEMINI_API_KEY "
                "or construct the provider with api_key=..."
            )

        self._key = key
        self._model = model_name or defaults.model_name
        self._task = task_type or defaults.task_type
        self._width = KNOWN_MODEL_WIDTHS.get(self._model, settings.embeddings.dimensions)
        self._client = None

        logger.debug(f"Gemini embeddings ready ({self._model}, task {self._task})")

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def dimensions(self) -> int:
        return self._width

    @property
    def client(self):
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._key)
            logger.info(f"Connected GenAI client for {self._model}")
        return self._client

    def embed_text(self, text: str) -> list[float]:
        try:
            response = self.client.models.embed_content(
                model=self._model,
                contents=text,
                config={"task_type": self._task},
            )
        except Exception as e:
            raise EmbeddingError(f"Gemini embedding request failed: {e}") from e

        embeddings = response.embeddings or []
        if not embeddings or not embeddings[0].values:
            raise EmbeddingError(f"Gemini returned no vector for model {self._model}")
        return list(embeddings[0].values)

    def get_info(self) -> dict:
        return {
            **super().get_info(),
            "task_type": self._task,
            "has_api_key": True,
        }
