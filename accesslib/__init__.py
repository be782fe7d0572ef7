"""Shared libraries for the access system API.

Subpackages:
- ``accesslib.common``: configuration, logging and metrics.
- ``accesslib.vector_store``: the embedding repository contract and its
  pgvector backend.

Notes:
- Keep HTTP concerns out of here; ``access_service`` owns the API surface.
"""
