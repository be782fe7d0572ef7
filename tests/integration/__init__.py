"""Integration tests against live PostgreSQL with pgvector."""
