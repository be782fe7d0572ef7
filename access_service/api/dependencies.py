"""Shared handler plumbing.

FastAPI dependencies that read the collaborators wired at startup from
``app.state``, and ``call_service`` which runs a service coroutine under the
request timeout and maps the error taxonomy onto HTTP status codes.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from fastapi import HTTPException, Request

from accesslib.vector_store.base import EmbeddingNotFoundError, EmbeddingStoreUnavailableError
from ..services.embedding_service import EmbeddingService, InvalidInputError

T = TypeVar("T")


def get_embedding_service(request: Request) -> EmbeddingService:
    """Get embedding service from application state."""
    return request.app.state.embedding_service


def get_request_timeout(request: Request) -> float:
    """Get the per-request time budget in seconds."""
    return request.app.state.config.access_request_timeout


def get_request_logger(request: Request) -> Any:
    """Get a logger bound to the current request."""
    return request.app.state.logger.bind(method=request.method, path=request.url.path)


def check_request(validator: Callable[[Any], None], payload: Any, log: Any) -> None:
    """Run an explicit request validator, answering 400 on failure."""
    try:
        validator(payload)
    except InvalidInputError as e:
        log.warning("Invalid request", error=str(e))
        raise HTTPException(status_code=400, detail=f"Bad Request: {e}")


async def call_service(
    awaitable: Awaitable[T],
    *,
    timeout: float,
    log: Any,
    action: str,
) -> T:
    """Await a service call and translate its failures.

    - ``InvalidInputError`` -> 400
    - ``EmbeddingNotFoundError`` -> 404
    - timeout, store unavailable or anything unexpected -> 500
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except InvalidInputError as e:
        log.warning("Invalid input", action=action, error=str(e))
        raise HTTPException(status_code=400, detail=f"Bad Request: {e}")
    except EmbeddingNotFoundError as e:
        log.info("Embedding not found", action=action, error=str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except asyncio.TimeoutError:
        log.error("Request timed out", action=action, timeout=timeout)
        raise HTTPException(status_code=500, detail=f"Internal Server Error: {action} timed out")
    except EmbeddingStoreUnavailableError as e:
        log.error("Embedding store unavailable", action=action, error=str(e))
        raise HTTPException(status_code=500, detail=f"Internal Server Error: {e}")
    except Exception as e:
        log.exception("Unexpected failure", action=action)
        raise HTTPException(status_code=500, detail=f"Internal Server Error: {e}")
