"""
Semantic Search Module - Filtered nearest-neighbour question search.
====================================================================

Composes kNN queries from a SearchFilter:
- Equality constraints on grade, topic and operation (ANDed)
- Exclusion of specific question ids
- Neighbour count from the filter limit (default 10)

Results come back in engine order with engine scores; nothing is re-sorted.
"""

from typing import Any, Optional

from mathsearch.indexing.embeddings import EmbeddingGenerator
from mathsearch.indexing.vector_store import VectorStore
from mathsearch.shared.exceptions import SearchError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import KnnQuery, SearchFilter, SearchResult, StoreHit
from mathsearch.shared.utils import truncate_text

logger = get_logger(__name__)

DEFAULT_INDEX_NAME = "math-questions"
DEFAULT_LIMIT = 10


class SemanticSearch:
    """
    Finds questions similar to a text or an embedding.

    Example:
        >>> search = SemanticSearch(store, generator)
        >>> results = search.find_similar("What is 5 + 3?", SearchFilter(grade=3, limit=5))
        >>> [r.similarity_score for r in results]
        [0.97, 0.91, 0.88]
    """

    def __init__(
        self,
        store: VectorStore,
        generator: EmbeddingGenerator,
        index_name: str = DEFAULT_INDEX_NAME,
        default_limit: int = DEFAULT_LIMIT,
    ):
        """
        Initialize the search.

        Args:
            store: Vector store holding the question index
            generator: Embedding generator for query text
            index_name: Name of the question index
            default_limit: Neighbour count when no filter is given
        """
        self._store = store
        self._generator = generator
        self._index_name = index_name
        self._default_limit = default_limit

    @property
    def index_name(self) -> str:
        return self._index_name

    def find_similar(
        self,
        text: str,
        filters: Optional[SearchFilter] = None,
    ) -> list[SearchResult]:
        """
        Find questions similar to ``text``.

        Raises:
            SearchError: If embedding the text or running the query fails
        """
        try:
            embedding = self._generator.generate_embedding(text)
        except Exception as e:
            logger.error(f"Failed to find similar questions for: {truncate_text(text)}")
            raise SearchError(f"Failed to find similar questions: {e}") from e

        return self.find_similar_by_embedding(embedding, filters)

    def find_similar_by_embedding(
        self,
        embedding: list[float],
        filters: Optional[SearchFilter] = None,
    ) -> list[SearchResult]:
        """
        Find questions nearest to an embedding.

        Raises:
            SearchError: If the query fails or returns malformed hits
        """
        filters = filters or SearchFilter(limit=self._default_limit)

        try:
            query = self.build_knn_query(embedding, filters)
            hits = self._store.search(self._index_name, query, query.k)
            results = [self._to_result(hit) for hit in hits]
        except Exception as e:
            logger.error(f"Failed to execute kNN search: {e}")
            raise SearchError(f"Failed to find similar questions: {e}") from e

        logger.debug(f"kNN search returned {len(results)} results (k={query.k})")
        return results

    def build_knn_query(self, embedding: list[float], filters: SearchFilter) -> KnnQuery:
        """Compose the kNN query for an embedding and filter."""
        terms: dict[str, str] = {}

        if filters.grade is not None:
            terms["metadata.grade"] = str(filters.grade)
        if filters.topic:
            terms["metadata.topic"] = filters.topic
        if filters.operation:
            terms["metadata.operation"] = filters.operation

        return KnnQuery(
            vector=embedding,
            k=filters.limit,
            terms=terms,
            exclude_ids=list(filters.exclude_ids),
        )

    @staticmethod
    def _to_result(hit: StoreHit) -> SearchResult:
        source: dict[str, Any] = hit.source
        return SearchResult(
            id=hit.id,
            question_text=source.get("question_text", ""),
            answer=source.get("answer", 0),
            similarity_score=hit.score,
            metadata=source.get("metadata") or {},
        )
