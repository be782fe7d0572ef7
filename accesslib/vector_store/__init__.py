"""Embedding repository adapters.

Primary components:
- ``base``: the ``Embedding`` record, abstract ``EmbeddingRepository`` and the
  store exceptions.
- ``pgvector``: PostgreSQL/pgvector implementation of the interface.
- ``factory``: helpers to construct a repository from typed config.
"""

from .base import (
    Embedding,
    EmbeddingNotFoundError,
    EmbeddingRepository,
    EmbeddingStoreConnectionError,
    EmbeddingStoreError,
    EmbeddingStoreQueryError,
    EmbeddingStoreTimeoutError,
    EmbeddingStoreUnavailableError,
)

__all__ = [
    "Embedding",
    "EmbeddingNotFoundError",
    "EmbeddingRepository",
    "EmbeddingStoreConnectionError",
    "EmbeddingStoreError",
    "EmbeddingStoreQueryError",
    "EmbeddingStoreTimeoutError",
    "EmbeddingStoreUnavailableError",
]
