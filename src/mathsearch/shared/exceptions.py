"""
Exceptions Module - Error types raised across the engine.
=========================================================

Every component catches collaborator failures at its own boundary and
re-raises one of these with a component-specific message, chaining the
original exception as ``__cause__``. Nothing is retried internally.
"""

from typing import Optional


class MathSearchError(Exception):
    """Base class for all MathSearch errors."""


class EmbeddingError(MathSearchError):
    """Embedding provider unreachable, malformed response, or dimension mismatch."""

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message)
        self.text = text


class VectorStoreError(MathSearchError):
    """Transport or engine failure reported by a VectorStore adapter.

    `failed_ids` lists the documents a bulk write rejected, when the engine
    reports them per item.
    """

    def __init__(self, message: str, failed_ids: Optional[list[str]] = None):
        super().__init__(message)
        self.failed_ids = failed_ids or []


class IndexLifecycleError(MathSearchError):
    """Create, delete or stats call against the index failed."""


class SearchError(MathSearchError):
    """kNN search failed, either while embedding the query or executing it."""


class DuplicateCheckError(MathSearchError):
    """Duplicate checking failed because the underlying search failed."""


class IndexingError(MathSearchError):
    """Single or bulk question indexing failed."""

    def __init__(self, message: str, question_text: Optional[str] = None):
        super().__init__(message)
        self.question_text = question_text
