"""Tests for the access system API.

Unit tests run against an in-memory repository and a fake asyncpg pool.
Integration tests in ``tests/integration`` need a live pgvector database.
"""
