"""
Indexing Module - Embeddings, vector stores and question indexing.
==================================================================

This module handles everything on the write side:

- embeddings_base: Abstract interface for embedding providers
- embeddings_ollama: Ollama HTTP embeddings (default)
- embeddings_gemini: Gemini API embeddings
- embedding_cache: Bounded FIFO embedding cache
- embeddings: Validated, cached embedding generator
- vector_store: VectorStore port and factory
- opensearch_store / chroma_store: VectorStore adapters
- index_manager: Index schema and lifecycle
- question_indexer: Single and bulk question indexing
- dataset_loader: Dataset file loading
"""

from mathsearch.indexing.embeddings_base import (
    EmbeddingProvider,
    get_embedding_provider,
)
from mathsearch.indexing.embedding_cache import EmbeddingCache
from mathsearch.indexing.embeddings import EmbeddingGenerator
from mathsearch.indexing.vector_store import VectorStore, create_vector_store
from mathsearch.indexing.index_manager import VectorIndexManager
from mathsearch.indexing.question_indexer import QuestionIndexer

__all__ = [
    # Embeddings
    "EmbeddingProvider",
    "get_embedding_provider",
    "EmbeddingCache",
    "EmbeddingGenerator",
    # Vector Store
    "VectorStore",
    "create_vector_store",
    # Indexing
    "VectorIndexManager",
    "QuestionIndexer",
]
