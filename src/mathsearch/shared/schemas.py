"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines the data contracts shared by indexing and search:
- Domain question model (input to indexing)
- Stored question documents and their metadata
- Search filters, results and duplicate reports
- Port-level query/hit models for vector stores
- Index, health and cache statistics
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class OperationType(str, Enum):
    """Arithmetic operation a question exercises."""

    ADDITION = "addition"
    SUBTRACTION = "subtraction"


class DifficultyLevel(str, Enum):
    """Difficulty labels produced by question generation."""

    GRADE_3 = "grade_3"


# ─────────────────────────────────────────────────────────────────────────────
# Domain Models
# ─────────────────────────────────────────────────────────────────────────────


class MathQuestion(BaseModel):
    """
    A generated math question, as handed to the indexer.

    ``id`` is optional; the indexer generates one when it is missing.
    """

    id: Optional[str] = None
    question: str
    answer: int
    operation: str = OperationType.ADDITION.value
    difficulty: str = DifficultyLevel.GRADE_3.value
    step_by_step_solution: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Question text cannot be empty")
        return v

    @field_validator("operation", "difficulty", mode="before")
    @classmethod
    def coerce_enum(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        return v


class QuestionMetadata(BaseModel):
    """
    Filterable metadata stored alongside each question.

    grade, topic, operation, difficulty, category and curriculum_strand are
    exact-match keyword fields; difficulty_score and generation_timestamp are
    range-filterable. Unknown keys are kept so documents loaded from datasets
    round-trip intact.
    """

    model_config = ConfigDict(extra="allow")

    grade: str
    topic: str
    operation: str
    difficulty: str
    difficulty_score: float = Field(default=0.3, ge=0.0, le=1.0)
    category: str = "math"
    curriculum_strand: str = "number"
    generation_timestamp: Optional[datetime] = None

    @field_validator("grade", mode="before")
    @classmethod
    def coerce_grade(cls, v: Any) -> Any:
        # Stored as a keyword; datasets and older documents may carry ints
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v


class QuestionDocument(BaseModel):
    """A question as written to the vector index."""

    id: str
    question_text: str
    answer: int
    embedding: list[float]
    metadata: QuestionMetadata

    def to_source(self) -> dict[str, Any]:
        """Serialize the stored body (everything except the id)."""
        return {
            "question_text": self.question_text,
            "answer": self.answer,
            "embedding": self.embedding,
            "metadata": self.metadata.model_dump(mode="json", exclude_none=True),
        }


# ─────────────────────────────────────────────────────────────────────────────
# Search Models
# ─────────────────────────────────────────────────────────────────────────────


class SearchFilter(BaseModel):
    """
    Constraints narrowing a nearest-neighbour search.

    Every present equality constraint is ANDed; ``exclude_ids`` removes
    documents by id. An empty filter matches everything.
    """

    grade: Optional[int] = None
    topic: Optional[str] = None
    operation: Optional[str] = None
    exclude_ids: list[str] = Field(default_factory=list)
    limit: int = Field(default=10, ge=1)


class SearchResult(BaseModel):
    """One nearest-neighbour match, in engine order."""

    id: str
    question_text: str
    answer: int
    similarity_score: float
    metadata: QuestionMetadata


class DuplicateInfo(BaseModel):
    """Report of an existing question considered a duplicate."""

    is_duplicate: Literal[True] = True
    existing_question: SearchResult
    similarity_score: float


# ─────────────────────────────────────────────────────────────────────────────
# Vector Store Port Models
# ─────────────────────────────────────────────────────────────────────────────


class KnnQuery(BaseModel):
    """Engine-neutral kNN query handed to a VectorStore."""

    vector: list[float]
    k: int = Field(ge=1)
    field: str = "embedding"
    terms: dict[str, str] = Field(default_factory=dict)
    exclude_ids: list[str] = Field(default_factory=list)

    @property
    def has_filter(self) -> bool:
        return bool(self.terms or self.exclude_ids)


class StoreHit(BaseModel):
    """A raw hit returned by a VectorStore search."""

    id: str
    score: float
    source: dict[str, Any] = Field(default_factory=dict)


class IndexStats(BaseModel):
    """Document count and on-disk size of an index."""

    document_count: int
    index_size: str


class HealthStatus(BaseModel):
    """Vector store health as reported by the engine."""

    status: Literal["healthy", "unhealthy"]
    cluster_status: Optional[str] = None
    node_count: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"


class CacheStats(BaseModel):
    """Embedding cache occupancy."""

    size: int
    max_size: int
