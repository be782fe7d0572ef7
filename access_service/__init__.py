"""Access system API service package.

Layout:
- ``api``: FastAPI routers (v1 and admin), request/response models and
  shared handler plumbing.
- ``services``: ``EmbeddingService`` holding vector validation and the
  nearest-match policy.
- ``main``: application factory and lifespan wiring.

Run locally with ``uvicorn access_service.main:app``.
"""
