"""API subpackage for the access service.

Contains FastAPI routers that expose endpoints for:
- Registering, validating and deleting embeddings (``routes``)
- Administrative CRUD (``admin``)
"""
