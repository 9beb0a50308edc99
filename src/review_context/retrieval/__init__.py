"""
Retrieval — cosine-similarity ranking over stored context records.

Public surface
--------------
- :class:`SimilarityRetriever` — query entry point.
- :func:`cosine_similarity` — the scoring function.
- :class:`DimensionMismatchError` — raised for vectors of unequal length.
"""

from review_context.retrieval.retriever import SimilarityRetriever
from review_context.retrieval.similarity import DimensionMismatchError, cosine_similarity

__all__ = [
    "DimensionMismatchError",
    "SimilarityRetriever",
    "cosine_similarity",
]
