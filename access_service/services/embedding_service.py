"""Embedding service.

Validates vector shape, builds ``Embedding`` records and delegates to the
repository. A nearest-match miss surfaces as ``EmbeddingNotFoundError``,
which callers must treat as a normal outcome rather than a fault.
"""

import math
from typing import Any, List, Optional, Sequence

import numpy as np
import structlog

from accesslib.common.metrics import MetricsCollector
from accesslib.vector_store.base import Embedding, EmbeddingNotFoundError, EmbeddingRepository


class InvalidInputError(ValueError):
    """Request data failed a shape or content check."""
    pass


def validate_vector(vector: Sequence[float], dimension: int) -> np.ndarray:
    """Check a vector and return it as a float32 array.

    Raises ``InvalidInputError`` unless the vector is one-dimensional, has
    exactly ``dimension`` components, every component is finite and at least
    one is non-zero. Cosine distance is undefined for a zero vector.
    """
    try:
        array = np.asarray(vector, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"vector must be numeric: {e}") from e

    if array.ndim != 1:
        raise InvalidInputError("vector must be one-dimensional")
    if array.shape[0] != dimension:
        raise InvalidInputError(f"vector size must be {dimension}, got {array.shape[0]}")
    if not np.all(np.isfinite(array)):
        raise InvalidInputError("vector components must be finite")
    if not np.any(array):
        raise InvalidInputError("vector must have a non-zero norm")
    return array


class EmbeddingService:
    """Add, read, update, delete and validate embeddings."""

    def __init__(
        self,
        repository: EmbeddingRepository,
        vector_dimension: int = 512,
        metrics: Optional[MetricsCollector] = None,
        logger: Optional[Any] = None,
    ):
        self.repository = repository
        self.vector_dimension = vector_dimension
        self.metrics = metrics
        self.logger = logger or structlog.get_logger("access_service.embedding")

    async def add(self, name: str, vector: Sequence[float]) -> Embedding:
        """Store a new embedding and return it with its assigned id."""
        embedding = Embedding(name=name, vector=validate_vector(vector, self.vector_dimension))
        embedding.id = await self.repository.create(embedding)
        return embedding

    async def get(self, embedding_id: int) -> Embedding:
        return await self.repository.get_by_id(embedding_id)

    async def list(self) -> List[Embedding]:
        return await self.repository.list()

    async def validate(self, vector: Sequence[float]) -> Embedding:
        """Find the stored embedding closest to ``vector``.

        Raises ``EmbeddingNotFoundError`` when no stored embedding clears
        the similarity threshold, or when the store reports no usable
        similarity for its candidate.
        """
        probe = validate_vector(vector, self.vector_dimension)
        try:
            match = await self.repository.find_nearest(probe)
        except EmbeddingNotFoundError:
            self._record_validation("no_match")
            raise

        if match.accuracy is None or not math.isfinite(match.accuracy):
            self._record_validation("no_match")
            self.logger.warning("Discarding match without similarity", embedding_id=match.id)
            raise EmbeddingNotFoundError(f"Embedding {match.id} has no finite similarity")

        self._record_validation("match")
        self.logger.debug("Validation matched", embedding_id=match.id, accuracy=match.accuracy)
        return match

    async def update(self, embedding_id: int, name: str, vector: Sequence[float]) -> None:
        embedding = Embedding(
            id=embedding_id,
            name=name,
            vector=validate_vector(vector, self.vector_dimension),
        )
        await self.repository.update(embedding)

    async def delete(self, embedding_id: int) -> None:
        await self.repository.delete_by_id(embedding_id)

    def _record_validation(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_validation(outcome)
