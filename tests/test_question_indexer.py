"""
Tests for the Question Indexer.
===============================

Tests for:
- Metadata derivation (grade, difficulty score)
- Fallback id generation
- Single and batch indexing
- IndexingError wrapping
"""

import re

import pytest
from unittest.mock import Mock


# ─────────────────────────────────────────────────────────────────────────────
# Metadata Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestMetadata:
    """Tests for metadata derivation helpers."""

    def test_extract_grade(self):
        """Test grade parsing from difficulty labels."""
        from mathsearch.indexing.question_indexer import extract_grade

        assert extract_grade("grade_3") == "3"
        assert extract_grade("GRADE_5") == "5"
        assert extract_grade("easy") == "3"
        assert extract_grade("") == "3"

    def test_difficulty_score(self):
        """Test the difficulty score table and its default."""
        from mathsearch.indexing.question_indexer import calculate_difficulty_score

        assert calculate_difficulty_score("grade_3") == 0.3
        assert calculate_difficulty_score("grade_6") == 0.6
        assert calculate_difficulty_score("unknown") == 0.3

    def test_extract_metadata(self, indexer, sample_question):
        """Test the stored metadata of a grade 3 addition question."""
        metadata = indexer.extract_metadata(sample_question)

        assert metadata.grade == "3"
        assert metadata.topic == "addition"
        assert metadata.operation == "addition"
        assert metadata.difficulty == "grade_3"
        assert metadata.difficulty_score == 0.3
        assert metadata.category == "math"
        assert metadata.curriculum_strand == "number"
        assert metadata.generation_timestamp == sample_question.created_at

    def test_generated_id_format(self):
        """Test the timestamp-hash fallback id."""
        from mathsearch.indexing.question_indexer import generate_question_id
        from mathsearch.shared.schemas import MathQuestion
        from mathsearch.shared.utils import simple_string_hash

        question = MathQuestion(question="What is 5 + 3?", answer=8)

        question_id = generate_question_id(question)

        match = re.fullmatch(r"q-(\d+)-(\d+)", question_id)
        assert match is not None
        assert int(match.group(2)) == simple_string_hash("What is 5 + 3?")


# ─────────────────────────────────────────────────────────────────────────────
# Single Indexing Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestIndexQuestion:
    """Tests for QuestionIndexer.index_question."""

    def test_index_question(self, indexer, memory_store, sample_question):
        """Test that the document is written under the question's id."""
        question_id = indexer.index_question(sample_question)

        assert question_id == "q-001"
        stored = memory_store.indices["math-questions"]["docs"]["q-001"]
        assert stored["question_text"] == "What is 5 + 3?"
        assert stored["answer"] == 8
        assert len(stored["embedding"]) == 768
        assert stored["metadata"]["grade"] == "3"
        assert stored["metadata"]["difficulty_score"] == 0.3

    def test_creates_index_once(self, indexer, memory_store, sample_question):
        """Test that the index is created on first use only."""
        indexer.index_question(sample_question)
        indexer.index_question(sample_question)

        assert memory_store.create_calls == 1

    def test_generates_id_when_missing(self, indexer, memory_store):
        """Test that a question without an id gets a fallback id."""
        from mathsearch.shared.schemas import MathQuestion

        question_id = indexer.index_question(MathQuestion(question="What is 9 + 1?", answer=10))

        assert question_id.startswith("q-")
        assert question_id in memory_store.indices["math-questions"]["docs"]

    def test_embedding_failure_wrapped(self, index_manager):
        """Test that embedding failures become IndexingError with the text."""
        from mathsearch.indexing.embeddings import EmbeddingGenerator
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import EmbeddingError, IndexingError
        from mathsearch.shared.schemas import MathQuestion
        from tests.conftest import FakeEmbeddingProvider

        generator = EmbeddingGenerator(FakeEmbeddingProvider(fail_on={"What is 5 + 3?"}))
        indexer = QuestionIndexer(generator, index_manager)

        with pytest.raises(IndexingError) as exc_info:
            indexer.index_question(MathQuestion(question="What is 5 + 3?", answer=8))

        assert exc_info.value.question_text == "What is 5 + 3?"
        assert isinstance(exc_info.value.__cause__, EmbeddingError)

    def test_index_lifecycle_failure_wrapped(self, generator, sample_question):
        """Test that index creation failures become IndexingError."""
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import IndexingError, IndexLifecycleError

        manager = Mock()
        manager.create_index_if_not_exists.side_effect = IndexLifecycleError("cluster down")

        with pytest.raises(IndexingError, match="cluster down"):
            QuestionIndexer(generator, manager).index_question(sample_question)


# ─────────────────────────────────────────────────────────────────────────────
# Batch Indexing Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestIndexQuestions:
    """Tests for QuestionIndexer.index_questions."""

    def test_empty_batch_makes_no_calls(self):
        """Test that an empty batch touches neither generator nor index."""
        from mathsearch.indexing.question_indexer import QuestionIndexer

        generator = Mock()
        manager = Mock()

        assert QuestionIndexer(generator, manager).index_questions([]) == []

        generator.generate_batch_embeddings.assert_not_called()
        manager.create_index_if_not_exists.assert_not_called()
        manager.bulk_index_questions.assert_not_called()

    def test_one_batch_embedding_and_one_bulk_write(self):
        """Test that [a, b] produces one batch call and two aligned documents."""
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.schemas import MathQuestion

        generator = Mock()
        generator.generate_batch_embeddings.return_value = [[1.0, 0.0], [0.0, 1.0]]
        manager = Mock()

        questions = [
            MathQuestion(id="a", question="What is 1 + 1?", answer=2),
            MathQuestion(id="b", question="What is 2 + 2?", answer=4),
        ]
        ids = QuestionIndexer(generator, manager).index_questions(questions)

        assert ids == ["a", "b"]
        generator.generate_batch_embeddings.assert_called_once_with(
            ["What is 1 + 1?", "What is 2 + 2?"]
        )
        manager.bulk_index_questions.assert_called_once()
        documents = manager.bulk_index_questions.call_args.args[0]
        assert [(d.id, d.question_text, d.embedding) for d in documents] == [
            ("a", "What is 1 + 1?", [1.0, 0.0]),
            ("b", "What is 2 + 2?", [0.0, 1.0]),
        ]

    def test_batch_written_to_store(self, indexer, memory_store, sample_questions):
        """Test an end-to-end batch against the in-memory store."""
        ids = indexer.index_questions(sample_questions)

        assert ids == ["q-001", "q-002", "q-003", "q-004"]
        assert len(memory_store.bulk_calls) == 1
        assert memory_store.indices["math-questions"]["docs"]["q-004"]["metadata"]["grade"] == "4"

    def test_batch_failure_is_total(self, index_manager, memory_store, sample_questions):
        """Test that one failing embedding aborts the batch before any write."""
        from mathsearch.indexing.embeddings import EmbeddingGenerator
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import IndexingError
        from tests.conftest import FakeEmbeddingProvider

        generator = EmbeddingGenerator(FakeEmbeddingProvider(fail_on={"What is 7 + 6?"}))
        indexer = QuestionIndexer(generator, index_manager)

        with pytest.raises(IndexingError) as exc_info:
            indexer.index_questions(sample_questions)

        assert exc_info.value.question_text == "What is 7 + 6?"
        assert "What is 7 + 6?" in str(exc_info.value)
        assert "What is 5 + 3?" not in str(exc_info.value)
        assert memory_store.bulk_calls == []

    def test_bulk_failure_wrapped(self, generator, sample_questions):
        """Test that a failing bulk write raises IndexingError."""
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import IndexingError, VectorStoreError

        manager = Mock()
        manager.bulk_index_questions.side_effect = VectorStoreError("errors: true")

        with pytest.raises(IndexingError, match="errors: true"):
            QuestionIndexer(generator, manager).index_questions(sample_questions)

    def test_bulk_failure_names_rejected_document(self, generator, sample_questions):
        """Test that the question whose document the store rejected is reported."""
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import IndexingError, VectorStoreError

        manager = Mock()
        manager.bulk_index_questions.side_effect = VectorStoreError(
            "Bulk indexing failed for 1 of 4 documents", failed_ids=["q-004"]
        )

        with pytest.raises(IndexingError) as exc_info:
            QuestionIndexer(generator, manager).index_questions(sample_questions)

        assert exc_info.value.question_text == "What is 25 + 17?"

    def test_unattributed_failure_names_batch(self, generator, sample_questions):
        """Test that a failure with no single culprit reports the batch, not a question."""
        from mathsearch.indexing.question_indexer import QuestionIndexer
        from mathsearch.shared.exceptions import IndexingError, VectorStoreError

        manager = Mock()
        manager.bulk_index_questions.side_effect = VectorStoreError("connection reset")

        with pytest.raises(IndexingError, match="batch of 4 questions") as exc_info:
            QuestionIndexer(generator, manager).index_questions(sample_questions)

        assert exc_info.value.question_text is None
