"""
MathSearch
==========

Semantic search and near-duplicate detection over a bank of short math
questions. Questions are embedded (768 dims), written to a vector index with
curriculum metadata, and queried by k-nearest-neighbour search under
grade/topic/operation filters.

Subpackages are imported on demand: `indexing`, `search`, `shared`, `cli`;
`factory.create_engine()` wires them together.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
