"""Request and response models for the access API.

Request bodies are decoded strictly: a boolean is not an id and a string is
not a vector component. Content rules (non-empty name, non-empty vector, id
within BIGSERIAL range) are checked by the explicit
``validate_*_request`` functions so every handler reports them the same way.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..services.embedding_service import InvalidInputError

# Ids are BIGSERIAL.
MAX_EMBEDDING_ID = 2 ** 63 - 1


class StrictRequest(BaseModel):
    """Base for request bodies: no coercion of JSON types."""
    model_config = ConfigDict(strict=True)


class AddEmbeddingRequest(StrictRequest):
    """Request model for adding an embedding."""
    name: str = Field(..., description="Label of the embedding")
    vector: List[float] = Field(..., description="Embedding components")


class ValidateEmbeddingRequest(StrictRequest):
    """Request model for nearest-match validation."""
    vector: List[float] = Field(..., description="Probe embedding")


class UpdateEmbeddingRequest(StrictRequest):
    """Request model for replacing name and vector of an embedding."""
    id: int = Field(..., description="Embedding identifier")
    name: str = Field(..., description="New label")
    vector: List[float] = Field(..., description="New embedding components")


class DeleteEmbeddingRequest(StrictRequest):
    """Request model for deleting an embedding."""
    id: int = Field(..., description="Embedding identifier")


class EmbeddingResponse(BaseModel):
    """A stored embedding."""
    id: int = Field(..., description="Embedding identifier")
    name: str = Field(..., description="Label of the embedding")
    vector: List[float] = Field(..., description="Embedding components")


class ValidateEmbeddingResponse(EmbeddingResponse):
    """The closest stored embedding and its similarity to the probe."""
    accuracy: float = Field(..., allow_inf_nan=False, description="1 - cosine distance to the probe")


def _require_name(name: str) -> None:
    if not name or not name.strip():
        raise InvalidInputError("name is required")


def _require_vector(vector: List[float]) -> None:
    if not vector:
        raise InvalidInputError("vector is required")


def _require_id(embedding_id: int) -> None:
    if embedding_id <= 0 or embedding_id > MAX_EMBEDDING_ID:
        raise InvalidInputError(f"id must be between 1 and {MAX_EMBEDDING_ID}")


def validate_add_request(request: AddEmbeddingRequest) -> None:
    _require_name(request.name)
    _require_vector(request.vector)


def validate_vector_request(request: ValidateEmbeddingRequest) -> None:
    _require_vector(request.vector)


def validate_update_request(request: UpdateEmbeddingRequest) -> None:
    _require_id(request.id)
    _require_name(request.name)
    _require_vector(request.vector)


def validate_delete_request(request: DeleteEmbeddingRequest) -> None:
    _require_id(request.id)


def validate_embedding_id(embedding_id: int) -> None:
    """Check an id taken from the URL path."""
    _require_id(embedding_id)
