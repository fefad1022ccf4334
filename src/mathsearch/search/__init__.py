"""
Search Module - Semantic retrieval and duplicate detection.
===========================================================

- semantic_search: kNN search with grade/topic/operation filters and exclusions
- duplicates: Threshold-based near-duplicate detection on top of search
"""

from mathsearch.search.semantic_search import SemanticSearch
from mathsearch.search.duplicates import DuplicateDetector, select_best_match

__all__ = [
    "SemanticSearch",
    "DuplicateDetector",
    "select_best_match",
]
