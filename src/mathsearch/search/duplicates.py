"""
Duplicate Detection Module - Threshold-based near-duplicate checks.
===================================================================

Searches a wider window (20 neighbours) than a normal search so the best
match is still found after the caller's filters narrow the candidates, then
keeps candidates at or above the similarity threshold.
"""

from typing import Optional

from mathsearch.search.semantic_search import SemanticSearch
from mathsearch.shared.exceptions import DuplicateCheckError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import DuplicateInfo, SearchFilter, SearchResult
from mathsearch.shared.utils import truncate_text

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.9
SEARCH_LIMIT = 20


def select_best_match(
    candidates: list[SearchResult],
    threshold: float,
) -> Optional[SearchResult]:
    """
    Pick the highest-scoring candidate with score >= threshold.

    Ties keep the earlier candidate. Returns None when nothing qualifies.
    """
    best: Optional[SearchResult] = None
    for candidate in candidates:
        if candidate.similarity_score < threshold:
            continue
        if best is None or candidate.similarity_score > best.similarity_score:
            best = candidate
    return best


class DuplicateDetector:
    """
    Decides whether a question text duplicates an indexed question.

    Example:
        >>> detector = DuplicateDetector(search)
        >>> info = detector.check_duplicate("What is 5 + 3?", SearchFilter(grade=3))
        >>> info.existing_question.id if info else None
        'q-001'
    """

    def __init__(
        self,
        search: SemanticSearch,
        default_threshold: float = DEFAULT_THRESHOLD,
        search_limit: int = SEARCH_LIMIT,
    ):
        self._search = search
        self._default_threshold = default_threshold
        self._search_limit = search_limit

    @property
    def default_threshold(self) -> float:
        return self._default_threshold

    def check_duplicate(
        self,
        text: str,
        filters: Optional[SearchFilter] = None,
        threshold: Optional[float] = None,
    ) -> Optional[DuplicateInfo]:
        """
        Look for an existing question at least ``threshold`` similar to ``text``.

        Args:
            text: Candidate question text
            filters: Search filter; its limit is replaced by the wider window
            threshold: Minimum similarity (inclusive), default 0.9

        Returns:
            DuplicateInfo for the best match, or None if there is none

        Raises:
            DuplicateCheckError: If the underlying search fails
        """
        if threshold is None:
            threshold = self._default_threshold

        search_filter = (filters or SearchFilter()).model_copy(
            update={"limit": self._search_limit}
        )

        try:
            candidates = self._search.find_similar(text, search_filter)
        except Exception as e:
            logger.error(f"Failed to check for duplicate: {truncate_text(text)}")
            raise DuplicateCheckError("Failed to check for duplicate questions") from e

        best = select_best_match(candidates, threshold)
        if best is None:
            return None

        logger.info(
            f'Duplicate detected: "{truncate_text(text)}" similar to '
            f'"{truncate_text(best.question_text)}" (score: {best.similarity_score:.4f})'
        )

        return DuplicateInfo(
            existing_question=best,
            similarity_score=best.similarity_score,
        )
