"""
Tests for the Vector Index Manager.
===================================

Tests for:
- Index mapping and settings
- Idempotent creation and deletion
- Error wrapping
"""

import pytest
from unittest.mock import Mock

from tests.conftest import DIMENSIONS


class TestIndexDefinition:
    """Tests for the question index schema."""

    def test_mapping_fields(self, index_manager):
        """Test the field types of the question index."""
        properties = index_manager.get_index_mapping()["properties"]

        assert properties["question_text"] == {"type": "text", "analyzer": "standard"}
        assert properties["answer"] == {"type": "integer"}

        embedding = properties["embedding"]
        assert embedding["type"] == "knn_vector"
        assert embedding["dimension"] == DIMENSIONS
        assert embedding["method"] == {
            "name": "hnsw",
            "space_type": "cosinesimil",
            "engine": "lucene",
            "parameters": {"ef_construction": 128, "m": 24},
        }

        metadata = properties["metadata"]["properties"]
        for field in ("grade", "topic", "operation", "difficulty", "category", "curriculum_strand"):
            assert metadata[field] == {"type": "keyword"}
        assert metadata["difficulty_score"] == {"type": "float"}
        assert metadata["generation_timestamp"] == {"type": "date"}

    def test_settings(self, index_manager):
        """Test index-level settings."""
        settings = index_manager.get_index_settings()["index"]

        assert settings["knn"] is True
        assert settings["knn.algo_param.ef_search"] == 100
        assert settings["number_of_shards"] == 1
        assert settings["number_of_replicas"] == 0

    def test_custom_config(self, memory_store):
        """Test that index name and parameters come from config."""
        from mathsearch.indexing.index_manager import VectorIndexManager
        from mathsearch.shared.config import IndexConfig

        manager = VectorIndexManager(
            memory_store,
            config=IndexConfig(name="custom", ef_search=50, m=16),
            dimensions=384,
        )

        assert manager.index_name == "custom"
        assert manager.get_index_settings()["index"]["knn.algo_param.ef_search"] == 50
        assert manager.get_index_mapping()["properties"]["embedding"]["dimension"] == 384


class TestIndexLifecycle:
    """Tests for create/delete/recreate/stats."""

    def test_create_if_not_exists_is_idempotent(self, index_manager, memory_store):
        """Test that repeated creation issues at most one create call."""
        index_manager.create_index_if_not_exists()
        index_manager.create_index_if_not_exists()
        index_manager.create_index_if_not_exists()

        assert memory_store.create_calls == 1
        assert memory_store.index_exists("math-questions")

    def test_delete_missing_is_noop(self, index_manager, memory_store):
        """Test that deleting a missing index does nothing."""
        index_manager.delete_index()

        assert not memory_store.index_exists("math-questions")

    def test_recreate_drops_documents(self, index_manager, memory_store):
        """Test that recreate leaves an empty index."""
        index_manager.create_index_if_not_exists()
        memory_store.index_document("math-questions", "q-1", {"embedding": [1.0]})

        index_manager.recreate_index()

        assert index_manager.get_index_stats().document_count == 0
        assert memory_store.create_calls == 2

    def test_create_failure_wrapped(self):
        """Test that store errors surface as IndexLifecycleError."""
        from mathsearch.indexing.index_manager import VectorIndexManager
        from mathsearch.shared.exceptions import IndexLifecycleError, VectorStoreError

        store = Mock()
        store.index_exists.side_effect = VectorStoreError("connection refused")

        with pytest.raises(IndexLifecycleError, match="connection refused") as exc_info:
            VectorIndexManager(store).create_index_if_not_exists()

        assert isinstance(exc_info.value.__cause__, VectorStoreError)

    def test_delete_failure_wrapped(self):
        """Test that a failing delete raises IndexLifecycleError."""
        from mathsearch.indexing.index_manager import VectorIndexManager
        from mathsearch.shared.exceptions import IndexLifecycleError, VectorStoreError

        store = Mock()
        store.index_exists.return_value = True
        store.delete_index.side_effect = VectorStoreError("forbidden")

        with pytest.raises(IndexLifecycleError):
            VectorIndexManager(store).delete_index()

    def test_stats_failure_wrapped(self, index_manager):
        """Test that stats on a missing index raise IndexLifecycleError."""
        from mathsearch.shared.exceptions import IndexLifecycleError

        with pytest.raises(IndexLifecycleError):
            index_manager.get_index_stats()

    def test_bulk_index_questions(self, index_manager, memory_store):
        """Test that documents are written in one bulk call, keyed by id."""
        from mathsearch.shared.schemas import QuestionDocument, QuestionMetadata

        index_manager.create_index_if_not_exists()
        metadata = QuestionMetadata(grade="3", topic="addition", operation="addition", difficulty="grade_3")
        documents = [
            QuestionDocument(id="q-1", question_text="a", answer=1, embedding=[1.0], metadata=metadata),
            QuestionDocument(id="q-2", question_text="b", answer=2, embedding=[0.5], metadata=metadata),
        ]

        index_manager.bulk_index_questions(documents)

        assert len(memory_store.bulk_calls) == 1
        assert [doc_id for doc_id, _ in memory_store.bulk_calls[0]] == ["q-1", "q-2"]
        assert memory_store.bulk_calls[0][0][1]["metadata"]["grade"] == "3"
