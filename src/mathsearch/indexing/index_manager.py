"""
Index Manager Module - Question index schema and lifecycle.
===========================================================

Owns the definition of the question index:
- question_text: full-text field
- embedding: kNN vector (HNSW, cosine similarity)
- answer: integer
- metadata: keyword fields for exact-match filters, float difficulty score,
  date generation timestamp

Lifecycle operations are idempotent where it matters: creating an existing
index and deleting a missing one are both no-ops.
"""

from typing import Any, Optional

from mathsearch.indexing.vector_store import VectorStore
from mathsearch.shared.config import IndexConfig
from mathsearch.shared.exceptions import IndexLifecycleError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import IndexStats, QuestionDocument

logger = get_logger(__name__)

KEYWORD_METADATA_FIELDS = (
    "grade",
    "topic",
    "operation",
    "difficulty",
    "category",
    "curriculum_strand",
)


class VectorIndexManager:
    """
    Defines and manages the question index on a VectorStore.

    Example:
        >>> manager = VectorIndexManager(store)
        >>> manager.create_index_if_not_exists()
        >>> manager.get_index_stats().document_count
        0
    """

    def __init__(
        self,
        store: VectorStore,
        config: Optional[IndexConfig] = None,
        dimensions: int = 768,
    ):
        """
        Initialize the manager.

        Args:
            store: Vector store holding the index
            config: Index name and ANN parameters (defaults if None)
            dimensions: Embedding vector dimension
        """
        self._store = store
        self._config = config or IndexConfig()
        self._dimensions = dimensions

    @property
    def index_name(self) -> str:
        return self._config.name

    @property
    def store(self) -> VectorStore:
        return self._store

    def get_index_mapping(self) -> dict[str, Any]:
        """Field mapping for the question index."""
        metadata_properties: dict[str, Any] = {
            field: {"type": "keyword"} for field in KEYWORD_METADATA_FIELDS
        }
        metadata_properties["difficulty_score"] = {"type": "float"}
        metadata_properties["generation_timestamp"] = {"type": "date"}

        return {
            "properties": {
                "question_text": {
                    "type": "text",
                    "analyzer": "standard",
                },
                "embedding": {
                    "type": "knn_vector",
                    "dimension": self._dimensions,
                    "method": {
                        "name": "hnsw",
                        "space_type": self._config.space_type,
                        "engine": self._config.engine,
                        "parameters": {
                            "ef_construction": self._config.ef_construction,
                            "m": self._config.m,
                        },
                    },
                },
                "answer": {"type": "integer"},
                "metadata": {"properties": metadata_properties},
            }
        }

    def get_index_settings(self) -> dict[str, Any]:
        """Index-level settings: kNN enabled, search breadth, fixed topology."""
        return {
            "index": {
                "knn": True,
                "knn.algo_param.ef_search": self._config.ef_search,
                "number_of_shards": self._config.number_of_shards,
                "number_of_replicas": self._config.number_of_replicas,
            }
        }

    def create_index_if_not_exists(self) -> None:
        """
        Create the index unless it already exists.

        Raises:
            IndexLifecycleError: If the existence check or creation fails
        """
        try:
            if self._store.index_exists(self.index_name):
                logger.debug(f"Index '{self.index_name}' already exists")
                return

            self._store.create_index(
                self.index_name,
                self.get_index_settings(),
                self.get_index_mapping(),
            )
        except Exception as e:
            logger.error(f"Failed to create index '{self.index_name}': {e}")
            raise IndexLifecycleError(f"Failed to create index '{self.index_name}': {e}") from e

        logger.info(f"Vector index '{self.index_name}' created successfully")

    def delete_index(self) -> None:
        """
        Delete the index if present.

        Raises:
            IndexLifecycleError: If the deletion fails
        """
        try:
            if not self._store.index_exists(self.index_name):
                logger.info(f"Index '{self.index_name}' does not exist, skipping deletion")
                return

            self._store.delete_index(self.index_name)
        except Exception as e:
            logger.error(f"Failed to delete index '{self.index_name}': {e}")
            raise IndexLifecycleError(f"Failed to delete index '{self.index_name}': {e}") from e

        logger.info(f"Index '{self.index_name}' deleted successfully")

    def recreate_index(self) -> None:
        """
        Drop and recreate the index. Destroys all indexed questions.

        Intended for test setup and resets only.
        """
        self.delete_index()
        self.create_index_if_not_exists()
        logger.info(f"Index '{self.index_name}' recreated successfully")

    def get_index_stats(self) -> IndexStats:
        """
        Report document count and storage size.

        Raises:
            IndexLifecycleError: If the stats call fails
        """
        try:
            return self._store.get_index_stats(self.index_name)
        except Exception as e:
            logger.error(f"Failed to get stats for index '{self.index_name}': {e}")
            raise IndexLifecycleError(
                f"Failed to get stats for index '{self.index_name}': {e}"
            ) from e

    def index_question(self, document: QuestionDocument) -> None:
        """Write one question document. Store errors propagate."""
        self._store.index_document(self.index_name, document.id, document.to_source())
        logger.debug(f"Question {document.id} indexed successfully")

    def bulk_index_questions(self, documents: list[QuestionDocument]) -> None:
        """Write many question documents in one bulk call. Store errors propagate."""
        self._store.bulk_index(
            self.index_name,
            [(document.id, document.to_source()) for document in documents],
        )
        logger.info(f"Bulk indexed {len(documents)} questions")
