"""
Tests Package - Unit and integration tests for MathSearch.
==========================================================

Test modules:
- test_embeddings: Cache, generator and provider tests
- test_stores: OpenSearch and Chroma adapter tests
- test_index_manager: Index schema and lifecycle tests
- test_question_indexer: Single and batch indexing tests
- test_search: Semantic search and duplicate detection tests
- test_dataset_loader: Dataset parsing and batch loading tests
- test_config: Settings loading tests
- test_cli: Command-line interface tests

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/mathsearch
"""
