"""Embedding repository factory.

Centralizes creation of concrete ``EmbeddingRepository`` backends so the
service entrypoint does not depend on implementation details.
"""

from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..common.config import AccessServiceConfig
from ..common.metrics import MetricsCollector
from .base import EmbeddingRepository
from .pgvector import PgVectorEmbeddingRepository

logger = structlog.get_logger("vector_store.factory")


class VectorStoreType(Enum):
    """Supported repository backends."""
    PGVECTOR = "pgvector"


class EmbeddingRepositoryFactory:
    """Factory for creating repository instances."""

    @staticmethod
    def create(
        store_type: VectorStoreType,
        config: Dict[str, Any],
        **kwargs: Any
    ) -> EmbeddingRepository:
        """Create a repository instance.

        Parameters
        - store_type: A ``VectorStoreType`` enum value
        - config: Backend-specific parameters (DSN, threshold, pool sizing)
        - kwargs: Collaborators forwarded to the implementation
          (``metrics``, ``logger``)
        """
        if store_type == VectorStoreType.PGVECTOR:
            dsn = config.get("dsn")
            if not dsn:
                raise ValueError("PgVector requires 'dsn' in config")
            if config.get("similarity_threshold") is None:
                raise ValueError("PgVector requires 'similarity_threshold' in config")

            return PgVectorEmbeddingRepository(
                dsn=dsn,
                similarity_threshold=float(config["similarity_threshold"]),
                vector_dimension=config.get("vector_dimension", 512),
                pool_size=config.get("pool_size", 10),
                max_queries=config.get("max_queries", 50000),
                command_timeout=config.get("command_timeout", 5.0),
                **kwargs
            )

        raise ValueError(f"Unsupported vector store type: {store_type}")


def create_embedding_repository(
    config: AccessServiceConfig,
    metrics: Optional[MetricsCollector] = None,
    repository_logger: Optional[Any] = None,
) -> EmbeddingRepository:
    """Create the repository described by the service configuration."""
    try:
        store_type = VectorStoreType(config.access_vector_backend)
    except ValueError:
        raise ValueError(f"Unsupported vector backend: {config.access_vector_backend}")

    store_config = {
        "dsn": config.access_db_dsn,
        "similarity_threshold": config.access_similarity_threshold,
        "vector_dimension": config.access_vector_dimension,
        "pool_size": config.access_db_pool_size,
        "max_queries": config.access_db_max_queries,
        "command_timeout": config.access_db_command_timeout,
    }
    repository = EmbeddingRepositoryFactory.create(
        store_type,
        store_config,
        metrics=metrics,
        logger=repository_logger,
    )
    logger.info(
        "Embedding repository created",
        backend=store_type.value,
        similarity_threshold=config.access_similarity_threshold,
    )
    return repository
