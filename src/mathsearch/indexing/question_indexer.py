"""
Question Indexer Module - Turn domain questions into indexed documents.
=======================================================================

Single path: ensure index → embed text → derive metadata → write one document.
Batch path: ensure index → one sequential batch embedding → bulk write.

Any failure is reported as one IndexingError; batches are all-or-nothing from
the caller's point of view.
"""

import re
import time
from typing import Optional

from mathsearch.indexing.embeddings import EmbeddingGenerator
from mathsearch.indexing.index_manager import VectorIndexManager
from mathsearch.shared.exceptions import EmbeddingError, IndexingError, VectorStoreError
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import MathQuestion, QuestionDocument, QuestionMetadata
from mathsearch.shared.utils import simple_string_hash, truncate_text

logger = get_logger(__name__)

DEFAULT_GRADE = "3"
DEFAULT_DIFFICULTY_SCORE = 0.3
DEFAULT_CATEGORY = "math"
DEFAULT_CURRICULUM_STRAND = "number"

# Normalized difficulty scores in [0, 1]
DIFFICULTY_SCORES: dict[str, float] = {
    "grade_1": 0.1,
    "grade_2": 0.2,
    "grade_3": 0.3,
    "grade_4": 0.4,
    "grade_5": 0.5,
    "grade_6": 0.6,
}

_GRADE_PATTERN = re.compile(r"grade_(\d+)", re.IGNORECASE)


def extract_grade(difficulty: str) -> str:
    """
    Parse the grade out of a difficulty label.

    Example:
        >>> extract_grade("grade_3")
        '3'
        >>> extract_grade("unknown")
        '3'
    """
    match = _GRADE_PATTERN.search(difficulty or "")
    return str(int(match.group(1))) if match else DEFAULT_GRADE


def calculate_difficulty_score(difficulty: str) -> float:
    """Look up the normalized score for a difficulty label (0.3 if unknown)."""
    return DIFFICULTY_SCORES.get((difficulty or "").lower(), DEFAULT_DIFFICULTY_SCORE)


def generate_question_id(question: MathQuestion) -> str:
    """
    Build a fallback id from the current time and a hash of the text.

    Two questions with identical text indexed in the same millisecond get the
    same id; callers that need guaranteed uniqueness must supply their own.
    """
    timestamp = int(time.time() * 1000)
    return f"q-{timestamp}-{simple_string_hash(question.question)}"


class QuestionIndexer:
    """
    Indexes MathQuestions through the embedding generator and index manager.

    Example:
        >>> indexer = QuestionIndexer(generator, index_manager)
        >>> indexer.index_question(MathQuestion(question="What is 5 + 3?", answer=8))
        'q-1718000000000-1234567'
    """

    def __init__(
        self,
        generator: EmbeddingGenerator,
        index_manager: VectorIndexManager,
    ):
        self._generator = generator
        self._index_manager = index_manager

    def ensure_index_exists(self) -> None:
        self._index_manager.create_index_if_not_exists()

    def extract_metadata(self, question: MathQuestion) -> QuestionMetadata:
        """Derive stored metadata from a domain question."""
        return QuestionMetadata(
            grade=extract_grade(question.difficulty),
            topic=question.operation,
            operation=question.operation,
            difficulty=question.difficulty,
            difficulty_score=calculate_difficulty_score(question.difficulty),
            category=DEFAULT_CATEGORY,
            curriculum_strand=DEFAULT_CURRICULUM_STRAND,
            generation_timestamp=question.created_at,
        )

    def generate_question_id(self, question: MathQuestion) -> str:
        return generate_question_id(question)

    def _build_document(
        self,
        question: MathQuestion,
        embedding: list[float],
    ) -> QuestionDocument:
        return QuestionDocument(
            id=question.id or self.generate_question_id(question),
            question_text=question.question,
            answer=question.answer,
            embedding=embedding,
            metadata=self.extract_metadata(question),
        )

    def index_question(self, question: MathQuestion) -> str:
        """
        Index one question.

        Args:
            question: Question to index

        Returns:
            The id the document was written under

        Raises:
            IndexingError: If index creation, embedding, or the write fails
        """
        try:
            self.ensure_index_exists()

            embedding = self._generator.generate_embedding(question.question)
            document = self._build_document(question, embedding)

            self._index_manager.index_question(document)
        except Exception as e:
            logger.error(f"Failed to index question: {truncate_text(question.question)}")
            raise IndexingError(
                f"Failed to index question '{question.question}': {e}",
                question_text=question.question,
            ) from e

        logger.info(f"Successfully indexed question: {document.id}")
        return document.id

    def index_questions(self, questions: list[MathQuestion]) -> list[str]:
        """
        Index a batch of questions with one batch embedding and one bulk write.

        An empty batch does nothing. Any failure aborts the whole batch.

        Args:
            questions: Questions to index

        Returns:
            Document ids, in input order

        Raises:
            IndexingError: If anything fails; nothing is reported as partially done
        """
        if not questions:
            logger.debug("No questions to index")
            return []

        documents: list[QuestionDocument] = []
        try:
            self.ensure_index_exists()

            texts = [q.question for q in questions]
            embeddings = self._generator.generate_batch_embeddings(texts)

            documents = [
                self._build_document(question, embedding)
                for question, embedding in zip(questions, embeddings, strict=True)
            ]

            self._index_manager.bulk_index_questions(documents)
        except Exception as e:
            failed_text = self._failed_question_text(e, documents)
            logger.error(f"Failed to index {len(questions)} questions in batch")
            if failed_text is None:
                message = f"Failed to index batch of {len(questions)} questions: {e}"
            else:
                message = (
                    f"Failed to index question '{failed_text}' "
                    f"(batch of {len(questions)}): {e}"
                )
            raise IndexingError(message, question_text=failed_text) from e

        logger.info(f"Successfully indexed {len(questions)} questions in batch")
        return [document.id for document in documents]

    @staticmethod
    def _failed_question_text(
        error: Exception, documents: list[QuestionDocument]
    ) -> Optional[str]:
        """Text of the question a batch failure can be pinned on, if any."""
        if isinstance(error, EmbeddingError):
            return error.text
        if isinstance(error, VectorStoreError) and error.failed_ids:
            by_id = {document.id: document.question_text for document in documents}
            for doc_id in error.failed_ids:
                if doc_id in by_id:
                    return by_id[doc_id]
        return None
