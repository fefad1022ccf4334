"""
Vector Store Module - Port for vector-capable index engines.
============================================================

The indexing and search components only depend on this narrow interface:
- Index lifecycle (exists / create / delete / stats)
- Single and bulk document writes
- kNN search with term and id-exclusion filters
- Cluster health

Adapters:
- OpenSearchVectorStore: OpenSearch REST API over requests
- ChromaVectorStore: embedded ChromaDB for local runs and tests
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from mathsearch.shared.config import Settings, get_settings
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import HealthStatus, IndexStats, KnnQuery, StoreHit

logger = get_logger(__name__)

# (document id, document body)
BulkItem = tuple[str, dict[str, Any]]


class VectorStore(ABC):
    """
    Abstract vector store.

    Adapters raise VectorStoreError on transport or engine failures, except
    check_health() which reports them in the returned HealthStatus.
    """

    @abstractmethod
    def index_exists(self, name: str) -> bool:
        """Check whether an index exists."""
        ...

    @abstractmethod
    def create_index(self, name: str, settings: dict[str, Any], mapping: dict[str, Any]) -> None:
        """Create an index with the given settings and mapping."""
        ...

    @abstractmethod
    def delete_index(self, name: str) -> None:
        """Delete an index. No-op if it does not exist."""
        ...

    @abstractmethod
    def index_document(self, name: str, doc_id: str, document: dict[str, Any]) -> None:
        """Write (or overwrite) one document and make it searchable."""
        ...

    @abstractmethod
    def bulk_index(self, name: str, documents: list[BulkItem]) -> None:
        """Write many documents in a single call."""
        ...

    @abstractmethod
    def search(self, name: str, query: KnnQuery, size: int) -> list[StoreHit]:
        """Run a kNN query. Hits are ordered by descending similarity."""
        ...

    @abstractmethod
    def get_index_stats(self, name: str) -> IndexStats:
        """Report document count and storage size."""
        ...

    @abstractmethod
    def check_health(self) -> HealthStatus:
        """Report engine health."""
        ...


# ─────────────────────────────────────────────────────────────────────────────
# Factory Function
# ─────────────────────────────────────────────────────────────────────────────


def create_vector_store(
    backend: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> VectorStore:
    """
    Create a vector store adapter.

    Args:
        backend: "opensearch" or "chroma" (uses config if None)
        settings: Settings to configure the adapter from

    Returns:
        VectorStore instance

    Raises:
        ValueError: If the backend name is invalid
    """
    settings = settings or get_settings()
    backend = (backend or settings.get_effective_vector_store_backend()).lower()

    if backend == "opensearch":
        from mathsearch.indexing.opensearch_store import OpenSearchVectorStore

        os_config = settings.vector_store.opensearch
        store: VectorStore = OpenSearchVectorStore(
            host=settings.get_effective_opensearch_host(),
            timeout=os_config.timeout,
            verify_ssl=os_config.verify_ssl,
            username=os_config.username or None,
            password=os_config.password or None,
        )

    elif backend == "chroma":
        from mathsearch.indexing.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(
            persist_directory=settings.resolve_path(settings.vector_store.chroma.persist_dir),
        )

    else:
        raise ValueError(
            f"Unknown vector store backend: {backend}. Valid options: opensearch, chroma"
        )

    logger.info(f"Vector store backend: {backend}")
    return store
