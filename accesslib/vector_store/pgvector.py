"""PgVector implementation of the embedding repository.

Embeddings live in PostgreSQL using the pgvector extension. Cosine distance
is computed by the ``<=>`` operator and converted to a similarity score
``1 - distance`` which is compared against the configured threshold.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- Every statement is funneled through ``_execute_query`` which pings the
  connection first and maps driver failures onto the store exceptions
"""

import asyncio
from typing import Any, Iterable, List, Optional

import asyncpg
import numpy as np
import structlog
from asyncpg import Connection, Pool
from pgvector.asyncpg import register_vector

from ..common.metrics import MetricsCollector
from .base import (
    Embedding,
    EmbeddingNotFoundError,
    EmbeddingRepository,
    EmbeddingStoreConnectionError,
    EmbeddingStoreQueryError,
    EmbeddingStoreTimeoutError,
    EmbeddingStoreUnavailableError,
)

TABLE_NAME = "embedding"

_CONNECTION_ERRORS = (
    OSError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
)


class PgVectorEmbeddingRepository(EmbeddingRepository):
    """PgVector implementation of the embedding repository."""

    def __init__(
        self,
        dsn: str,
        similarity_threshold: float,
        vector_dimension: int = 512,
        pool_size: int = 10,
        max_queries: int = 50000,
        command_timeout: float = 5.0,
        metrics: Optional[MetricsCollector] = None,
        logger: Optional[Any] = None,
    ):
        """Configure a pgvector-backed repository.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - similarity_threshold: Minimum ``1 - distance`` counted as a match
        - vector_dimension: Column dimension used when creating the schema
        - pool_size: Max size of asyncpg connection pool
        - max_queries: Queries per connection before recycling
        - command_timeout: Seconds to allow per DB command
        - metrics: Optional collector for store operation counters
        - logger: Optional structlog logger
        """
        self.dsn = dsn
        self.similarity_threshold = similarity_threshold
        self.vector_dimension = vector_dimension
        self.pool_size = pool_size
        self.max_queries = max_queries
        self.command_timeout = command_timeout
        self.metrics = metrics
        self.logger = logger or structlog.get_logger("vector_store.pgvector")
        self._pool: Optional[Pool] = None

    async def _init_connection(self, conn: Connection) -> None:
        """Register pgvector codec for asyncpg connections."""
        await register_vector(conn)

    async def _get_pool(self) -> Pool:
        """Get or create connection pool.

        The pool is created lazily so the service can start while the
        database is still coming up; readiness reports the gap.
        """
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    max_queries=self.max_queries,
                    command_timeout=self.command_timeout,
                    init=self._init_connection,
                )
                self.logger.info("Created PgVector connection pool", pool_size=self.pool_size)
            except (asyncio.TimeoutError, asyncpg.exceptions.PostgresError, *_CONNECTION_ERRORS) as e:
                self.logger.error("Failed to create PgVector connection pool", error=str(e))
                raise EmbeddingStoreConnectionError(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _ping(self, conn: Connection) -> None:
        await conn.fetchval("SELECT 1", timeout=self.command_timeout)

    async def _execute_query(
        self,
        operation: str,
        query: str,
        *args: Any,
        fetch: bool = False,
        fetch_one: bool = False
    ) -> Any:
        """Execute a query after a liveness check.

        The ``fetch``/``fetch_one`` flags control how results are retrieved.
        Driver failures are mapped to ``EmbeddingStoreConnectionError``,
        ``EmbeddingStoreTimeoutError`` or ``EmbeddingStoreQueryError``.
        """
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                await self._ping(conn)
                if fetch_one:
                    result = await conn.fetchrow(query, *args, timeout=self.command_timeout)
                elif fetch:
                    result = await conn.fetch(query, *args, timeout=self.command_timeout)
                else:
                    result = await conn.execute(query, *args, timeout=self.command_timeout)
        except asyncio.TimeoutError as e:
            self._record(operation, "timeout")
            self.logger.error("Query timed out", operation=operation, timeout=self.command_timeout)
            raise EmbeddingStoreTimeoutError(
                f"{operation} exceeded {self.command_timeout}s"
            ) from e
        except _CONNECTION_ERRORS as e:
            self._record(operation, "unavailable")
            self.logger.error("Store unreachable", operation=operation, error=str(e))
            raise EmbeddingStoreConnectionError(f"Store unreachable: {e}") from e
        except asyncpg.exceptions.PostgresError as e:
            self._record(operation, "error")
            self.logger.error("Query execution failed", operation=operation, query=query, error=str(e))
            raise EmbeddingStoreQueryError(f"Query failed: {e}") from e

        self._record(operation, "ok")
        return result

    def _record(self, operation: str, status: str) -> None:
        if self.metrics is not None:
            self.metrics.record_store_operation(operation, status)

    async def create(self, embedding: Embedding) -> int:
        """Insert a new embedding and return its id."""
        query = f"INSERT INTO {TABLE_NAME} (name, vector_) VALUES ($1, $2) RETURNING id"
        row = await self._execute_query(
            "create",
            query,
            embedding.name,
            _as_array(embedding.vector),
            fetch_one=True,
        )
        embedding_id = int(row["id"])
        self.logger.info("Stored embedding", embedding_id=embedding_id, name=embedding.name)
        return embedding_id

    async def get_by_id(self, embedding_id: int) -> Embedding:
        query = f"SELECT id, name, vector_ FROM {TABLE_NAME} WHERE id = $1"
        row = await self._execute_query("get", query, embedding_id, fetch_one=True)
        if row is None:
            self.logger.warning("Embedding not found", embedding_id=embedding_id)
            raise EmbeddingNotFoundError(f"Embedding {embedding_id} not found")
        return _row_to_embedding(row)

    async def list(self) -> List[Embedding]:
        query = f"SELECT id, name, vector_ FROM {TABLE_NAME}"
        rows = await self._execute_query("list", query, fetch=True)
        return [_row_to_embedding(row) for row in rows]

    async def find_nearest(self, vector: np.ndarray) -> Embedding:
        """Return the closest embedding whose similarity clears the threshold."""
        query = f"""
            SELECT id, name, vector_,
                   1 - (vector_ <=> $1) AS accuracy
            FROM {TABLE_NAME}
            WHERE 1 - (vector_ <=> $1) > $2
              AND (vector_ <=> $1) <> 'NaN'::float8
            ORDER BY vector_ <=> $1 ASC
            LIMIT 1
        """
        row = await self._execute_query(
            "find_nearest",
            query,
            _as_array(vector),
            self.similarity_threshold,
            fetch_one=True,
        )
        if row is None:
            self.logger.info("No embedding above threshold", threshold=self.similarity_threshold)
            raise EmbeddingNotFoundError(
                f"No embedding with similarity above {self.similarity_threshold}"
            )

        embedding = _row_to_embedding(row)
        embedding.accuracy = float(row["accuracy"])
        self.logger.info(
            "Nearest embedding found",
            embedding_id=embedding.id,
            accuracy=embedding.accuracy,
        )
        return embedding

    async def update(self, embedding: Embedding) -> None:
        query = f"UPDATE {TABLE_NAME} SET name = $1, vector_ = $2 WHERE id = $3"
        status = await self._execute_query(
            "update",
            query,
            embedding.name,
            _as_array(embedding.vector),
            embedding.id,
        )
        if _affected_rows(status) == 0:
            self.logger.warning("Embedding not found for update", embedding_id=embedding.id)
            raise EmbeddingNotFoundError(f"Embedding {embedding.id} not found")
        self.logger.info("Updated embedding", embedding_id=embedding.id)

    async def delete_by_id(self, embedding_id: int) -> None:
        """Delete an embedding. Missing ids are only logged."""
        query = f"DELETE FROM {TABLE_NAME} WHERE id = $1"
        status = await self._execute_query("delete", query, embedding_id)

        if _affected_rows(status):
            self.logger.info("Deleted embedding", embedding_id=embedding_id)
        else:
            self.logger.warning("Embedding not found for deletion", embedding_id=embedding_id)

    async def ensure_schema(self) -> None:
        """Create the extension, table and HNSW index when missing."""
        statements = [
            "CREATE EXTENSION IF NOT EXISTS vector",
            f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                id BIGSERIAL PRIMARY KEY,
                name TEXT NOT NULL,
                vector_ vector({int(self.vector_dimension)}) NOT NULL
            )
            """,
            f"""
            CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_vector
            ON {TABLE_NAME} USING hnsw (vector_ vector_cosine_ops)
            """,
        ]
        # The codec can only be registered once the extension exists, so
        # bootstrap over a plain connection instead of the pool.
        try:
            conn = await asyncpg.connect(self.dsn, timeout=self.command_timeout)
        except (asyncio.TimeoutError, *_CONNECTION_ERRORS) as e:
            raise EmbeddingStoreConnectionError(f"Store unreachable: {e}") from e

        try:
            for statement in statements:
                await conn.execute(statement)
        except asyncpg.exceptions.PostgresError as e:
            self.logger.error("Schema bootstrap failed", error=str(e))
            raise EmbeddingStoreQueryError(f"Schema bootstrap failed: {e}") from e
        finally:
            await conn.close()

        self.logger.info(
            "Embedding schema ready",
            table=TABLE_NAME,
            vector_dimension=self.vector_dimension,
        )

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        try:
            await self._execute_query("health", "SELECT 1", fetch_one=True)
            return True
        except EmbeddingStoreUnavailableError as e:
            self.logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            self.logger.info("Closed PgVector connection pool")


def _as_array(vector: Iterable[float]) -> np.ndarray:
    return np.asarray(vector, dtype=np.float32)


def _row_to_embedding(row: Any) -> Embedding:
    vector = row["vector_"]
    # Newer pgvector releases decode to ``Vector`` rather than ndarray.
    if hasattr(vector, "to_numpy"):
        vector = vector.to_numpy()
    return Embedding(
        id=int(row["id"]),
        name=row["name"],
        vector=_as_array(vector),
    )


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command tag such as ``UPDATE 1``."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0
