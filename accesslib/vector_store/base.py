"""Base embedding repository interface.

Defines the abstract contract the access service depends on, independent of
the backing implementation. The database owns distance computation and
indexing; implementations only translate calls into single statements.

All methods are asynchronous to fit the ASGI request model.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass
class Embedding:
    """A named vector.

    ``accuracy`` is only populated on records returned by a nearest-match
    search and is never persisted.
    """
    name: str
    vector: np.ndarray
    id: Optional[int] = None
    accuracy: Optional[float] = None

    def to_dict(self, include_accuracy: bool = False) -> dict:
        """Serialize to a JSON-friendly mapping."""
        data = {
            "id": self.id,
            "name": self.name,
            "vector": np.asarray(self.vector, dtype=np.float32).tolist(),
        }
        if include_accuracy:
            data["accuracy"] = self.accuracy
        return data


class EmbeddingRepository(ABC):
    """Abstract base class for embedding repositories.

    Implementations must check store liveness before each operation and
    report failures through the exceptions declared in this module.
    """

    @abstractmethod
    async def create(self, embedding: Embedding) -> int:
        """Insert name and vector.

        Returns the identifier assigned by the store.
        """
        pass

    @abstractmethod
    async def get_by_id(self, embedding_id: int) -> Embedding:
        """Fetch a single record.

        Raises ``EmbeddingNotFoundError`` when no row matches.
        """
        pass

    @abstractmethod
    async def list(self) -> List[Embedding]:
        """Return all records in store-default order."""
        pass

    @abstractmethod
    async def find_nearest(self, vector: np.ndarray) -> Embedding:
        """Return the closest record above the similarity threshold.

        The returned record carries the similarity as ``accuracy``. Raises
        ``EmbeddingNotFoundError`` when nothing clears the threshold.
        """
        pass

    @abstractmethod
    async def update(self, embedding: Embedding) -> None:
        """Overwrite name and vector of an existing record.

        Raises ``EmbeddingNotFoundError`` when the id does not exist.
        """
        pass

    @abstractmethod
    async def delete_by_id(self, embedding_id: int) -> None:
        """Remove a record. Absent ids are a silent no-op."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    async def ensure_schema(self) -> None:
        """Create backing tables and indexes. Stores without a schema skip it."""
        return None

    async def close(self) -> None:
        """Release held resources."""
        return None


class EmbeddingStoreError(Exception):
    """Base exception for embedding store operations."""
    pass


class EmbeddingNotFoundError(EmbeddingStoreError):
    """No record matched the lookup or the similarity threshold."""
    pass


class EmbeddingStoreUnavailableError(EmbeddingStoreError):
    """The store could not serve the request."""
    pass


class EmbeddingStoreConnectionError(EmbeddingStoreUnavailableError):
    """Connection error to the store."""
    pass


class EmbeddingStoreQueryError(EmbeddingStoreUnavailableError):
    """Query error in the store."""
    pass


class EmbeddingStoreTimeoutError(EmbeddingStoreUnavailableError):
    """A store command exceeded its time budget."""
    pass
