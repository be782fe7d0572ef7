"""Utility scripts for operating the access service.

Scripts include:
- ``init_db.py``: create the pgvector extension, embedding table and index.
"""
