"""
Cross-cutting pieces: settings, logging, the error tree, pydantic schemas and
small helpers. Nothing in here imports from `indexing` or `search`.
"""

from mathsearch.shared.config import get_settings, Settings
from mathsearch.shared.exceptions import (
    DuplicateCheckError,
    EmbeddingError,
    IndexingError,
    IndexLifecycleError,
    MathSearchError,
    SearchError,
    VectorStoreError,
)
from mathsearch.shared.logging import get_logger, setup_logging
from mathsearch.shared.schemas import (
    DuplicateInfo,
    MathQuestion,
    QuestionDocument,
    QuestionMetadata,
    SearchFilter,
    SearchResult,
)
from mathsearch.shared.utils import simple_string_hash, truncate_text

__all__ = [
    "get_settings",
    "Settings",
    "get_logger",
    "setup_logging",
    "MathSearchError",
    "EmbeddingError",
    "VectorStoreError",
    "IndexLifecycleError",
    "SearchError",
    "DuplicateCheckError",
    "IndexingError",
    "MathQuestion",
    "QuestionDocument",
    "QuestionMetadata",
    "SearchFilter",
    "SearchResult",
    "DuplicateInfo",
    "simple_string_hash",
    "truncate_text",
]
