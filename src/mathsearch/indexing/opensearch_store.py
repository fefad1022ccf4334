"""
OpenSearch Store Module - VectorStore adapter for the OpenSearch REST API.
==========================================================================

Talks to a single OpenSearch endpoint with a requests session:
- Index lifecycle via HEAD/PUT/DELETE /{index}
- Writes with refresh=true so documents are immediately searchable
- Bulk writes as NDJSON; any per-item error fails the call
- kNN search using the k-NN plugin query DSL with efficient filtering
- Stats from the _cat/indices API and health from _cluster/health
"""

import json
from typing import Any, Optional

import requests

from mathsearch.indexing.vector_store import BulkItem, VectorStore
from mathsearch.shared.exceptions import VectorStoreError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import HealthStatus, IndexStats, KnnQuery, StoreHit

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Query DSL
# ─────────────────────────────────────────────────────────────────────────────


def build_knn_query_body(query: KnnQuery) -> dict[str, Any]:
    """
    Render a KnnQuery as an OpenSearch k-NN query clause.

    A single term constraint becomes the filter directly; several are wrapped
    in ``bool.must``. Excluded ids go into ``bool.must_not`` as an ids query.

    Example:
        >>> build_knn_query_body(KnnQuery(vector=[0.1], k=5, terms={"metadata.topic": "addition"}))
        {'knn': {'embedding': {'vector': [0.1], 'k': 5, 'filter': {'term': {'metadata.topic': 'addition'}}}}}
    """
    clause: dict[str, Any] = {"vector": query.vector, "k": query.k}
    if not query.has_filter:
        return {"knn": {query.field: clause}}

    must = [{"term": {field: value}} for field, value in query.terms.items()]
    must_not = [{"ids": {"values": list(query.exclude_ids)}}] if query.exclude_ids else []

    if must and not must_not and len(must) == 1:
        clause["filter"] = must[0]
    else:
        bool_query: dict[str, Any] = {}
        if must:
            bool_query["must"] = must
        if must_not:
            bool_query["must_not"] = must_not
        clause["filter"] = {"bool": bool_query}

    return {"knn": {query.field: clause}}


# ─────────────────────────────────────────────────────────────────────────────
# Adapter
# ─────────────────────────────────────────────────────────────────────────────


class OpenSearchVectorStore(VectorStore):
    """
    VectorStore adapter for OpenSearch with the k-NN plugin.

    Example:
        >>> store = OpenSearchVectorStore(host="http://localhost:9200")
        >>> store.check_health().status
        'healthy'
    """

    def __init__(
        self,
        host: str = "http://localhost:9200",
        timeout: float = 30.0,
        verify_ssl: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the adapter.

        Args:
            host: OpenSearch base URL
            timeout: Per-request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            username: Optional basic-auth user
            password: Optional basic-auth password
            session: Optional pre-configured requests session
        """
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._auth = (username, password) if username else None
        self._session = session

        logger.debug(f"OpenSearch store configured: host={self.host}, timeout={self.timeout}s")

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.verify = self.verify_ssl
            if self._auth:
                self._session.auth = self._auth
        return self._session

    def _request(
        self,
        method: str,
        path: str,
        allowed_status: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request, raising VectorStoreError on transport or HTTP errors."""
        url = f"{self.host}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise VectorStoreError(f"OpenSearch {method} {path} failed: {e}") from e

        if response.status_code >= 400 and response.status_code not in allowed_status:
            raise VectorStoreError(
                f"OpenSearch {method} {path} returned {response.status_code}: "
                f"{response.text[:500]}"
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise VectorStoreError(f"OpenSearch returned a non-JSON response: {e}") from e

    # ── Index lifecycle ──────────────────────────────────────────────────────

    def index_exists(self, name: str) -> bool:
        response = self._request("HEAD", f"/{name}", allowed_status=(404,))
        return response.status_code == 200

    def create_index(self, name: str, settings: dict[str, Any], mapping: dict[str, Any]) -> None:
        self._request("PUT", f"/{name}", json={"settings": settings, "mappings": mapping})
        logger.info(f"Index {name} created")

    def delete_index(self, name: str) -> None:
        response = self._request("DELETE", f"/{name}", allowed_status=(404,))
        if response.status_code == 404:
            logger.info(f"Index {name} does not exist, skipping deletion")
            return
        logger.info(f"Index {name} deleted")

    def get_index_stats(self, name: str) -> IndexStats:
        response = self._request("GET", f"/_cat/indices/{name}", params={"format": "json"})
        rows = self._json(response)
        if not rows:
            raise VectorStoreError(f"No stats returned for index {name}")

        info = rows[0]
        try:
            document_count = int(info.get("docs.count") or 0)
        except (TypeError, ValueError) as e:
            raise VectorStoreError(f"Malformed docs.count for index {name}: {e}") from e

        return IndexStats(document_count=document_count, index_size=info.get("store.size") or "0b")

    # ── Writes ───────────────────────────────────────────────────────────────

    def index_document(self, name: str, doc_id: str, document: dict[str, Any]) -> None:
        self._request(
            "PUT",
            f"/{name}/_doc/{doc_id}",
            params={"refresh": "true"},
            json=document,
        )
        logger.debug(f"Document {doc_id} indexed in {name}")

    def bulk_index(self, name: str, documents: list[BulkItem]) -> None:
        if not documents:
            return

        lines = []
        for doc_id, document in documents:
            lines.append(json.dumps({"index": {"_index": name, "_id": doc_id}}))
            lines.append(json.dumps(document))
        body = "\n".join(lines) + "\n"

        response = self._request(
            "POST",
            "/_bulk",
            params={"refresh": "true"},
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/x-ndjson"},
        )
        result = self._json(response)

        if result.get("errors"):
            failed = [
                item.get("index", {})
                for item in result.get("items", [])
                if item.get("index", {}).get("error")
            ]
            first_error = failed[0].get("error") if failed else "unknown error"
            logger.error(f"Bulk indexing reported {len(failed)} failed items: {first_error}")
            raise VectorStoreError(
                f"Bulk indexing failed for {len(failed)} of {len(documents)} documents: "
                f"{first_error}",
                failed_ids=[item["_id"] for item in failed if item.get("_id")],
            )

        logger.info(f"Bulk indexed {len(documents)} documents into {name}")

    # ── Search ───────────────────────────────────────────────────────────────

    def search(self, name: str, query: KnnQuery, size: int) -> list[StoreHit]:
        body = {"size": size, "query": build_knn_query_body(query)}
        response = self._request("POST", f"/{name}/_search", json=body)
        result = self._json(response)

        hits = (result.get("hits") or {}).get("hits") or []
        return [
            StoreHit(
                id=hit["_id"],
                score=hit.get("_score") or 0.0,
                source=hit.get("_source") or {},
            )
            for hit in hits
        ]

    # ── Health ───────────────────────────────────────────────────────────────

    def check_health(self) -> HealthStatus:
        try:
            response = self._request("GET", "/_cluster/health")
            body = self._json(response)
        except VectorStoreError as e:
            logger.error(f"OpenSearch health check failed: {e}")
            return HealthStatus(status="unhealthy", error=str(e))

        cluster_status = body.get("status")
        return HealthStatus(
            status="unhealthy" if cluster_status == "red" else "healthy",
            cluster_status=cluster_status,
            node_count=body.get("number_of_nodes"),
        )
