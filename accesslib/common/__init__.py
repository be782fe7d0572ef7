"""Common utilities shared across the project.

Includes:
- ``config``: pydantic-settings configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.

Import pattern:
- from accesslib.common.config import AccessServiceConfig
- from accesslib.common.logging import configure_logging
"""
