"""
Dataset Loader Module - Bulk-load question datasets into the index.
===================================================================

Reads the curriculum question dataset (JSON) and feeds it through the
QuestionIndexer in fixed-size batches.

Expected layout:
    {
      "generated_at": "...",
      "curriculum": "...",
      "items": [
        {"grade": 3, "subject": "math", "topic": "Addition", "category": "...",
         "questions": [{"question_id": "...", "difficulty": "easy",
                        "prompt": "...", "answer": "8", ...}]}
      ]
    }
"""

import re
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field

from mathsearch.indexing.question_indexer import QuestionIndexer
from mathsearch.shared.logging import get_logger
from mathsearch.shared.schemas import MathQuestion
from mathsearch.shared.utils import load_json

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 50

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


# ─────────────────────────────────────────────────────────────────────────────
# Dataset Models
# ─────────────────────────────────────────────────────────────────────────────


class DatasetQuestion(BaseModel):
    question_id: str
    difficulty: str = "easy"
    prompt: str
    answer: str
    explanation: str = ""
    source: str = ""
    tone: str = ""


class DatasetItem(BaseModel):
    grade: int
    subject: str = "math"
    topic: str
    category: str = ""
    questions: list[DatasetQuestion] = Field(default_factory=list)


class QuestionDataset(BaseModel):
    generated_at: Optional[str] = None
    curriculum: Optional[str] = None
    items: list[DatasetItem] = Field(default_factory=list)

    @property
    def question_count(self) -> int:
        return sum(len(item.questions) for item in self.items)


# ─────────────────────────────────────────────────────────────────────────────
# Conversion
# ─────────────────────────────────────────────────────────────────────────────


def load_dataset(path: Path) -> QuestionDataset:
    """
    Read and validate a dataset file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the file does not match the layout
    """
    dataset = QuestionDataset.model_validate(load_json(Path(path)))
    logger.info(f"Dataset loaded: {len(dataset.items)} topics, {dataset.question_count} questions")
    return dataset


def parse_answer(answer: str) -> Optional[int]:
    """
    Parse a free-text answer into an integer.

    Returns None for answers that are not whole numbers.

    Example:
        >>> parse_answer("$12")
        12
        >>> parse_answer("2.5")
    """
    cleaned = _NON_NUMERIC.sub("", answer or "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not value.is_integer():
        return None
    return int(value)


def to_math_questions(
    dataset: QuestionDataset,
    limit: Optional[int] = None,
) -> list[MathQuestion]:
    """
    Convert dataset entries to MathQuestions.

    Args:
        dataset: Parsed dataset
        limit: Maximum number of questions to return

    Returns:
        Questions keyed by their dataset ids; entries with non-integer
        answers are skipped
    """
    questions: list[MathQuestion] = []

    for item in dataset.items:
        for entry in item.questions:
            if limit is not None and len(questions) >= limit:
                return questions

            answer = parse_answer(entry.answer)
            if answer is None:
                logger.warning(
                    f"Skipping {entry.question_id}: answer {entry.answer!r} is not a whole number"
                )
                continue

            questions.append(
                MathQuestion(
                    id=entry.question_id,
                    question=entry.prompt,
                    answer=answer,
                    operation=item.topic.lower(),
                    difficulty=f"grade_{item.grade}",
                )
            )

    return questions


def load_into_index(
    indexer: QuestionIndexer,
    questions: list[MathQuestion],
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> int:
    """
    Index questions in batches.

    A failing batch raises IndexingError; earlier batches stay indexed.

    Args:
        indexer: Indexer to write through
        questions: Questions to index
        batch_size: Questions per bulk request
        progress_callback: Called with (indexed, total) after each batch

    Returns:
        Number of questions indexed
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    indexed = 0
    for start in range(0, len(questions), batch_size):
        batch = questions[start : start + batch_size]
        indexer.index_questions(batch)
        indexed += len(batch)
        logger.info(f"Indexed {indexed}/{len(questions)} questions")
        if progress_callback:
            progress_callback(indexed, len(questions))

    return indexed
