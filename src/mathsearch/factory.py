"""
Factory Module - Wire the engine components together.
=====================================================

Explicit constructor composition: provider → cache → generator, store →
index manager, (store, generator) → search → duplicate detector, and
(generator, index manager) → indexer.
"""

from dataclasses import dataclass
from typing import Optional

from mathsearch.indexing.embedding_cache import EmbeddingCache
from mathsearch.indexing.embeddings import EmbeddingGenerator
from mathsearch.indexing.embeddings_base import EmbeddingProvider, get_embedding_provider
from mathsearch.indexing.index_manager import VectorIndexManager
from mathsearch.indexing.question_indexer import QuestionIndexer
from mathsearch.indexing.vector_store import VectorStore, create_vector_store
from mathsearch.search.duplicates import DuplicateDetector
from mathsearch.search.semantic_search import SemanticSearch
from mathsearch.shared.config import Settings, get_settings


@dataclass
class SearchEngine:
    """All engine components, sharing one store and one generator."""

    store: VectorStore
    generator: EmbeddingGenerator
    index_manager: VectorIndexManager
    search: SemanticSearch
    duplicates: DuplicateDetector
    indexer: QuestionIndexer


def create_embedding_generator(
    settings: Optional[Settings] = None,
    provider: Optional[EmbeddingProvider] = None,
) -> EmbeddingGenerator:
    """Build a generator with a configured provider and a fresh bounded cache."""
    settings = settings or get_settings()
    provider = provider or get_embedding_provider(settings=settings)

    return EmbeddingGenerator(
        provider=provider,
        cache=EmbeddingCache(max_size=settings.embeddings.cache_size),
        dimensions=settings.embeddings.dimensions,
    )


def create_engine(
    settings: Optional[Settings] = None,
    store: Optional[VectorStore] = None,
    provider: Optional[EmbeddingProvider] = None,
) -> SearchEngine:
    """
    Build the full engine.

    Args:
        settings: Settings (global settings if None)
        store: Vector store to use instead of the configured backend
        provider: Embedding provider to use instead of the configured one

    Returns:
        SearchEngine with every component wired

    Example:
        >>> engine = create_engine()
        >>> engine.indexer.index_question(question)
        >>> engine.duplicates.check_duplicate("What is 5 + 3?")
    """
    settings = settings or get_settings()
    store = store or create_vector_store(settings=settings)
    generator = create_embedding_generator(settings, provider)

    index_manager = VectorIndexManager(
        store,
        config=settings.index,
        dimensions=settings.embeddings.dimensions,
    )
    search = SemanticSearch(
        store,
        generator,
        index_name=settings.index.name,
        default_limit=settings.search.default_limit,
    )
    duplicates = DuplicateDetector(
        search,
        default_threshold=settings.get_effective_duplicate_threshold(),
        search_limit=settings.search.duplicate_search_limit,
    )
    indexer = QuestionIndexer(generator, index_manager)

    return SearchEngine(
        store=store,
        generator=generator,
        index_manager=index_manager,
        search=search,
        duplicates=duplicates,
        indexer=indexer,
    )
