"""
Chroma Store Module - VectorStore adapter for embedded ChromaDB.
================================================================

Maps the index schema onto a ChromaDB collection:
- One collection per index, cosine space
- HNSW parameters taken from the index mapping/settings
- Question text stored as the Chroma document
- Metadata flattened (answer and question id stored alongside)
- Term filters and id exclusions translated to where clauses
"""

import json
from pathlib import Path
from typing import Any, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from mathsearch.indexing.vector_store import BulkItem, VectorStore
from mathsearch.shared.exceptions import VectorStoreError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import HealthStatus, IndexStats, KnnQuery, StoreHit
from mathsearch.shared.utils import directory_size, ensure_directory, format_bytes

logger = get_logger(__name__)

# OpenSearch space types → Chroma distance functions
SPACE_TYPES = {
    "cosinesimil": "cosine",
    "l2": "l2",
    "innerproduct": "ip",
}

ID_FIELD = "question_id"
ANSWER_FIELD = "answer"
METADATA_PREFIX = "metadata."


class ChromaVectorStore(VectorStore):
    """
    VectorStore adapter backed by a persistent ChromaDB client.

    Example:
        >>> store = ChromaVectorStore(persist_directory=Path("data/chroma"))
        >>> store.index_exists("math-questions")
        False
    """

    def __init__(
        self,
        persist_directory: Path,
        client: Optional[Any] = None,
    ):
        """
        Initialize the adapter.

        Args:
            persist_directory: Directory for persistent storage
            client: Optional pre-built Chroma client
        """
        self.persist_directory = Path(persist_directory)
        self._client = client

        logger.debug(f"Chroma store configured: persist_dir={self.persist_directory}")

    @property
    def client(self):
        """Lazily create the persistent Chroma client."""
        if self._client is None:
            ensure_directory(self.persist_directory)
            self._client = chromadb.PersistentClient(
                path=str(self.persist_directory),
                settings=ChromaSettings(
                    anonymized_telemetry=False,
                    allow_reset=True,
                ),
            )
        return self._client

    def _collection_names(self) -> list[str]:
        # Older clients return Collection objects, newer ones return names
        return [c if isinstance(c, str) else c.name for c in self.client.list_collections()]

    def _get_collection(self, name: str):
        try:
            return self.client.get_collection(name=name)
        except Exception as e:
            raise VectorStoreError(f"Chroma collection {name} is not available: {e}") from e

    # ── Index lifecycle ──────────────────────────────────────────────────────

    def index_exists(self, name: str) -> bool:
        try:
            return name in self._collection_names()
        except Exception as e:
            raise VectorStoreError(f"Failed to list Chroma collections: {e}") from e

    def create_index(self, name: str, settings: dict[str, Any], mapping: dict[str, Any]) -> None:
        metadata = self._collection_metadata(settings, mapping)
        try:
            self.client.create_collection(name=name, metadata=metadata)
        except Exception as e:
            raise VectorStoreError(f"Failed to create Chroma collection {name}: {e}") from e
        logger.info(f"Collection {name} created with {metadata}")

    def delete_index(self, name: str) -> None:
        if not self.index_exists(name):
            logger.info(f"Collection {name} does not exist, skipping deletion")
            return
        try:
            self.client.delete_collection(name)
        except Exception as e:
            raise VectorStoreError(f"Failed to delete Chroma collection {name}: {e}") from e
        logger.info(f"Collection {name} deleted")

    def get_index_stats(self, name: str) -> IndexStats:
        collection = self._get_collection(name)
        try:
            count = collection.count()
        except Exception as e:
            raise VectorStoreError(f"Failed to count Chroma collection {name}: {e}") from e

        return IndexStats(
            document_count=count,
            index_size=format_bytes(directory_size(self.persist_directory)),
        )

    @staticmethod
    def _collection_metadata(settings: dict[str, Any], mapping: dict[str, Any]) -> dict[str, Any]:
        """Translate index settings/mapping into Chroma HNSW collection metadata."""
        method = (
            mapping.get("properties", {}).get("embedding", {}).get("method", {})
        )
        parameters = method.get("parameters", {})
        index_settings = settings.get("index", {})

        metadata: dict[str, Any] = {
            "hnsw:space": SPACE_TYPES.get(method.get("space_type", "cosinesimil"), "cosine"),
        }
        if "ef_construction" in parameters:
            metadata["hnsw:construction_ef"] = parameters["ef_construction"]
        if "m" in parameters:
            metadata["hnsw:M"] = parameters["m"]
        if "knn.algo_param.ef_search" in index_settings:
            metadata["hnsw:search_ef"] = index_settings["knn.algo_param.ef_search"]
        return metadata

    # ── Writes ───────────────────────────────────────────────────────────────

    @staticmethod
    def _flatten(doc_id: str, document: dict[str, Any]) -> dict[str, Any]:
        """Flatten a stored document's metadata into Chroma scalar metadata."""
        flat: dict[str, Any] = {}
        for key, value in (document.get("metadata") or {}).items():
            if value is None:
                continue
            if isinstance(value, (str, int, float, bool)):
                flat[key] = value
            else:
                flat[key] = json.dumps(value, default=str)
        # Keyword semantics for grade, matching the OpenSearch mapping
        if "grade" in flat:
            flat["grade"] = str(flat["grade"])
        flat[ANSWER_FIELD] = document.get("answer")
        flat[ID_FIELD] = doc_id
        return flat

    def bulk_index(self, name: str, documents: list[BulkItem]) -> None:
        if not documents:
            return

        collection = self._get_collection(name)
        try:
            collection.upsert(
                ids=[doc_id for doc_id, _ in documents],
                embeddings=[doc["embedding"] for _, doc in documents],
                documents=[doc.get("question_text", "") for _, doc in documents],
                metadatas=[self._flatten(doc_id, doc) for doc_id, doc in documents],
            )
        except Exception as e:
            raise VectorStoreError(f"Failed to write {len(documents)} documents to {name}: {e}") from e

        logger.debug(f"Upserted {len(documents)} documents into {name}")

    def index_document(self, name: str, doc_id: str, document: dict[str, Any]) -> None:
        self.bulk_index(name, [(doc_id, document)])

    # ── Search ───────────────────────────────────────────────────────────────

    @staticmethod
    def _build_where_clause(query: KnnQuery) -> Optional[dict[str, Any]]:
        """Build a Chroma where clause from term filters and id exclusions."""
        if not query.has_filter:
            return None

        conditions: list[dict[str, Any]] = []

        for field, value in query.terms.items():
            key = field[len(METADATA_PREFIX):] if field.startswith(METADATA_PREFIX) else field
            conditions.append({key: value})

        if query.exclude_ids:
            conditions.append({ID_FIELD: {"$nin": list(query.exclude_ids)}})

        if len(conditions) == 1:
            return conditions[0]
        else:
            return {"$and": conditions}

    def search(self, name: str, query: KnnQuery, size: int) -> list[StoreHit]:
        collection = self._get_collection(name)

        try:
            count = collection.count()
            if count == 0:
                return []

            results = collection.query(
                query_embeddings=[query.vector],
                n_results=min(size, count),
                where=self._build_where_clause(query),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise VectorStoreError(f"Chroma query against {name} failed: {e}") from e

        return self._results_to_hits(results)

    @staticmethod
    def _results_to_hits(results: dict) -> list[StoreHit]:
        """Convert Chroma query results to StoreHits (score = 1 - cosine distance)."""
        if not results or not results.get("ids") or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits = []
        for i, doc_id in enumerate(ids):
            metadata = dict(metadatas[i]) if metadatas and metadatas[i] else {}
            answer = metadata.pop(ANSWER_FIELD, 0)
            metadata.pop(ID_FIELD, None)
            distance = distances[i] if distances else 0.0

            hits.append(
                StoreHit(
                    id=doc_id,
                    score=1.0 - distance,
                    source={
                        "question_text": documents[i] if documents else "",
                        "answer": answer,
                        "metadata": metadata,
                    },
                )
            )

        return hits

    # ── Health ───────────────────────────────────────────────────────────────

    def check_health(self) -> HealthStatus:
        try:
            self.client.heartbeat()
        except Exception as e:
            logger.error(f"Chroma health check failed: {e}")
            return HealthStatus(status="unhealthy", error=str(e))

        return HealthStatus(status="healthy", cluster_status="green", node_count=1)
