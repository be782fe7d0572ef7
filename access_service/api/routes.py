"""Public v1 routes: register, validate and delete embeddings."""

from typing import Any

from fastapi import APIRouter, Depends, Response

from ..services.embedding_service import EmbeddingService
from .dependencies import (
    call_service,
    check_request,
    get_embedding_service,
    get_request_logger,
    get_request_timeout,
)
from .schemas import (
    AddEmbeddingRequest,
    DeleteEmbeddingRequest,
    ValidateEmbeddingRequest,
    ValidateEmbeddingResponse,
    validate_add_request,
    validate_delete_request,
    validate_vector_request,
)

router = APIRouter(tags=["v1"])


@router.post("/embedding", status_code=201)
async def add_embedding(
    request: AddEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    """Register a reference embedding."""
    check_request(validate_add_request, request, log)

    embedding = await call_service(
        service.add(request.name, request.vector),
        timeout=timeout,
        log=log,
        action="add",
    )

    log.info("Embedding added", embedding_id=embedding.id, name=embedding.name)
    return Response(status_code=201)


@router.post("/embedding/validate", response_model=ValidateEmbeddingResponse)
async def validate_embedding(
    request: ValidateEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    """Return the closest stored embedding above the similarity threshold.

    Answers 404 when nothing is close enough.
    """
    check_request(validate_vector_request, request, log)

    match = await call_service(
        service.validate(request.vector),
        timeout=timeout,
        log=log,
        action="validate",
    )

    log.info("Relevant match found", embedding_id=match.id, accuracy=match.accuracy)
    return ValidateEmbeddingResponse(**match.to_dict(include_accuracy=True))


@router.delete("/embedding")
async def delete_embedding(
    request: DeleteEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    """Delete an embedding. Unknown ids succeed."""
    check_request(validate_delete_request, request, log)

    await call_service(
        service.delete(request.id),
        timeout=timeout,
        log=log,
        action="delete",
    )

    log.info("Embedding deleted", embedding_id=request.id)
    return Response(status_code=200)
