#!/usr/bin/env python3
"""Initialize the embedding table with the configured vector dimension."""

import asyncio
import sys

from accesslib.common.config import AccessServiceConfig
from accesslib.common.logging import configure_logging
from accesslib.vector_store.base import EmbeddingStoreUnavailableError
from accesslib.vector_store.factory import create_embedding_repository


async def init_database(config: AccessServiceConfig) -> None:
    """Create the pgvector extension, table and index if missing."""
    print(f"Initializing database with vector dimension: {config.access_vector_dimension}")

    repository = create_embedding_repository(config)
    try:
        await repository.ensure_schema()
    finally:
        await repository.close()

    print("✓ pgvector extension enabled")
    print(f"✓ embedding table ready with vector dimension {config.access_vector_dimension}")
    print("✓ hnsw cosine index ready")


def main() -> int:
    config = AccessServiceConfig()
    configure_logging("init-db", config.access_log_level, "console")
    try:
        asyncio.run(init_database(config))
    except EmbeddingStoreUnavailableError as e:
        print(f"❌ Database initialization failed: {e}")
        return 1
    print("Database initialization completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
