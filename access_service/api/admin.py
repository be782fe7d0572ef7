"""Admin routes: full CRUD over stored embeddings."""

from typing import Any, List

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
    EmbeddingResponse,
    UpdateEmbeddingRequest,
    validate_add_request,
    validate_delete_request,
    validate_embedding_id,
    validate_update_request,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/embedding", status_code=201)
async def add_embedding(
    request: AddEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    check_request(validate_add_request, request, log)

    embedding = await call_service(
        service.add(request.name, request.vector),
        timeout=timeout,
        log=log,
        action="add",
    )

    log.info("Embedding added", embedding_id=embedding.id, name=embedding.name)
    return Response(status_code=201)


@router.get("/embedding/{embedding_id}", response_model=EmbeddingResponse)
async def get_embedding(
    embedding_id: int,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    check_request(validate_embedding_id, embedding_id, log)

    embedding = await call_service(
        service.get(embedding_id),
        timeout=timeout,
        log=log,
        action="get",
    )
    return EmbeddingResponse(**embedding.to_dict())


@router.get("/embeddings", response_model=List[EmbeddingResponse])
async def list_embeddings(
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    embeddings = await call_service(
        service.list(),
        timeout=timeout,
        log=log,
        action="list",
    )

    log.info("Embeddings listed", count=len(embeddings))
    return [EmbeddingResponse(**embedding.to_dict()) for embedding in embeddings]


@router.put("/embedding")
async def update_embedding(
    request: UpdateEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    """Replace name and vector. Unknown ids answer 404."""
    check_request(validate_update_request, request, log)

    await call_service(
        service.update(request.id, request.name, request.vector),
        timeout=timeout,
        log=log,
        action="update",
    )

    log.info("Embedding updated", embedding_id=request.id)
    return Response(status_code=200)


@router.delete("/embedding")
async def delete_embedding(
    request: DeleteEmbeddingRequest,
    service: EmbeddingService = Depends(get_embedding_service),
    timeout: float = Depends(get_request_timeout),
    log: Any = Depends(get_request_logger),
):
    check_request(validate_delete_request, request, log)

    await call_service(
        service.delete(request.id),
        timeout=timeout,
        log=log,
        action="delete",
    )

    log.info("Embedding deleted", embedding_id=request.id)
    return Response(status_code=200)
