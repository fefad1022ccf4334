"""
Test fixtures.
==============

Nothing here talks to a network: embeddings come from `FakeEmbeddingProvider`
(hash-seeded unit vectors) and documents live in `InMemoryVectorStore`, which
scores with cosine similarity like the real k-NN index.
"""

import hashlib
import math
import random
import tempfile
import threading
from pathlib import Path
from typing import Any, Generator, Optional

import pytest

from mathsearch.indexing.embeddings_base import EmbeddingProvider
from mathsearch.indexing.vector_store import BulkItem, VectorStore
from mathsearch.shared.exceptions import VectorStoreError
from mathsearch.shared.schemas import HealthStatus, IndexStats, KnnQuery, StoreHit

DIMENSIONS = 768


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────


def deterministic_vector(text: str, dimensions: int = DIMENSIONS) -> list[float]:
    """Unit vector seeded by the text, identical across runs."""
    seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:16], 16)
    rng = random.Random(seed)
    values = [rng.uniform(-1.0, 1.0) for _ in range(dimensions)]
    norm = math.sqrt(sum(v * v for v in values))
    return [v / norm for v in values]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Provider returning fixed or hash-seeded vectors and counting calls."""

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        dimensions: int = DIMENSIONS,
        fail_on: Optional[set[str]] = None,
    ):
        self.vectors = vectors or {}
        self._dimensions = dimensions
        self.fail_on = fail_on or set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-embed"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed_text(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        if text in self.fail_on:
            raise RuntimeError(f"upstream failure for {text}")
        if text in self.vectors:
            return list(self.vectors[text])
        return deterministic_vector(text, self._dimensions)


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _lookup(source: dict[str, Any], dotted: str) -> Any:
    value: Any = source
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class InMemoryVectorStore(VectorStore):
    """VectorStore keeping documents in dicts and scoring by cosine similarity."""

    def __init__(self):
        self.indices: dict[str, dict[str, Any]] = {}
        self.create_calls = 0
        self.bulk_calls: list[list[BulkItem]] = []
        self.search_calls: list[tuple[KnnQuery, int]] = []
        self.fail_search = False

    def index_exists(self, name: str) -> bool:
        return name in self.indices

    def create_index(self, name: str, settings: dict[str, Any], mapping: dict[str, Any]) -> None:
        if name in self.indices:
            raise VectorStoreError(f"resource_already_exists_exception: {name}")
        self.create_calls += 1
        self.indices[name] = {"settings": settings, "mapping": mapping, "docs": {}}

    def delete_index(self, name: str) -> None:
        self.indices.pop(name, None)

    def _docs(self, name: str) -> dict[str, dict[str, Any]]:
        if name not in self.indices:
            raise VectorStoreError(f"index_not_found_exception: {name}")
        return self.indices[name]["docs"]

    def index_document(self, name: str, doc_id: str, document: dict[str, Any]) -> None:
        self._docs(name)[doc_id] = document

    def bulk_index(self, name: str, documents: list[BulkItem]) -> None:
        self.bulk_calls.append(list(documents))
        docs = self._docs(name)
        for doc_id, document in documents:
            docs[doc_id] = document

    def search(self, name: str, query: KnnQuery, size: int) -> list[StoreHit]:
        self.search_calls.append((query, size))
        if self.fail_search:
            raise VectorStoreError("search_phase_execution_exception")

        hits = []
        for doc_id, source in self._docs(name).items():
            if doc_id in query.exclude_ids:
                continue
            if any(str(_lookup(source, field)) != value for field, value in query.terms.items()):
                continue
            hits.append(StoreHit(id=doc_id, score=_cosine(query.vector, source["embedding"]), source=source))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:size]

    def get_index_stats(self, name: str) -> IndexStats:
        return IndexStats(document_count=len(self._docs(name)), index_size="0b")

    def check_health(self) -> HealthStatus:
        return HealthStatus(status="healthy", cluster_status="green", node_count=1)


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Scratch directory removed after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Repository root."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Shipped config/settings.yaml."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Component Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    """Fake 768-dimensional embedding provider."""
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    """Empty in-memory vector store."""
    return InMemoryVectorStore()


@pytest.fixture
def generator(fake_provider):
    """Embedding generator over the fake provider."""
    from mathsearch.indexing.embedding_cache import EmbeddingCache
    from mathsearch.indexing.embeddings import EmbeddingGenerator

    return EmbeddingGenerator(fake_provider, EmbeddingCache(max_size=100), dimensions=DIMENSIONS)


@pytest.fixture
def index_manager(memory_store):
    """Index manager over the in-memory store."""
    from mathsearch.indexing.index_manager import VectorIndexManager

    return VectorIndexManager(memory_store, dimensions=DIMENSIONS)


@pytest.fixture
def indexer(generator, index_manager):
    """Question indexer wired to the fake provider and in-memory store."""
    from mathsearch.indexing.question_indexer import QuestionIndexer

    return QuestionIndexer(generator, index_manager)


@pytest.fixture
def semantic_search(memory_store, generator):
    """Semantic search over the in-memory store."""
    from mathsearch.search.semantic_search import SemanticSearch

    return SemanticSearch(memory_store, generator)


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_question():
    """A grade 3 addition question."""
    from mathsearch.shared.schemas import MathQuestion

    return MathQuestion(
        id="q-001",
        question="What is 5 + 3?",
        answer=8,
        operation="addition",
        difficulty="grade_3",
    )


@pytest.fixture
def sample_questions():
    """A small mixed batch of questions."""
    from mathsearch.shared.schemas import MathQuestion

    return [
        MathQuestion(id="q-001", question="What is 5 + 3?", answer=8),
        MathQuestion(id="q-002", question="What is 12 - 4?", answer=8, operation="subtraction"),
        MathQuestion(id="q-003", question="What is 7 + 6?", answer=13),
        MathQuestion(
            id="q-004",
            question="What is 25 + 17?",
            answer=42,
            difficulty="grade_4",
        ),
    ]


@pytest.fixture
def make_result():
    """Factory for SearchResult instances with a given id and score."""
    from mathsearch.shared.schemas import QuestionMetadata, SearchResult

    def _make(result_id: str, score: float, text: Optional[str] = None) -> SearchResult:
        return SearchResult(
            id=result_id,
            question_text=text or f"Question {result_id}",
            answer=8,
            similarity_score=score,
            metadata=QuestionMetadata(
                grade="3",
                topic="addition",
                operation="addition",
                difficulty="grade_3",
            ),
        )

    return _make


@pytest.fixture
def sample_dataset() -> dict:
    """Dataset file contents in the curriculum generator layout."""
    return {
        "generated_at": "2024-06-01T10:00:00Z",
        "curriculum": "grade-3-math",
        "items": [
            {
                "grade": 3,
                "subject": "math",
                "topic": "Addition",
                "category": "number",
                "questions": [
                    {
                        "question_id": "add-001",
                        "difficulty": "easy",
                        "prompt": "What is 5 + 3?",
                        "answer": "8",
                    },
                    {
                        "question_id": "add-002",
                        "difficulty": "easy",
                        "prompt": "Sam has 4 apples and gets 9 more. How many apples?",
                        "answer": "13 apples",
                    },
                    {
                        "question_id": "add-003",
                        "difficulty": "medium",
                        "prompt": "What is half of 5?",
                        "answer": "2.5",
                    },
                ],
            },
            {
                "grade": 3,
                "subject": "math",
                "topic": "Subtraction",
                "category": "number",
                "questions": [
                    {
                        "question_id": "sub-001",
                        "difficulty": "easy",
                        "prompt": "What is 12 - 4?",
                        "answer": "8",
                    },
                ],
            },
        ],
    }


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "requires_api: marks tests that require API keys"
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset the cached settings singleton between tests."""
    from mathsearch.shared.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
