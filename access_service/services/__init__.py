"""Service layer between HTTP handlers and the embedding repository."""
