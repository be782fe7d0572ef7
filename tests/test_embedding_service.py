"""Tests for the embedding service."""

import numpy as np
import pytest
from prometheus_client import CollectorRegistry

from accesslib.common.metrics import MetricsCollector
from accesslib.vector_store.base import Embedding, EmbeddingNotFoundError, EmbeddingStoreUnavailableError
from access_service.services.embedding_service import (
    EmbeddingService,
    InvalidInputError,
    validate_vector,
)

from .conftest import DIMENSION, InMemoryEmbeddingRepository, unit_vector


@pytest.fixture
def service(memory_repository):
    return EmbeddingService(memory_repository, vector_dimension=DIMENSION)


def test_validate_vector_accepts_exact_dimension():
    array = validate_vector(unit_vector(0), DIMENSION)
    assert array.dtype == np.float32
    assert array.shape == (DIMENSION,)


@pytest.mark.parametrize("length", [0, 1, 511, 513])
def test_validate_vector_rejects_wrong_length(length):
    with pytest.raises(InvalidInputError):
        validate_vector([0.1] * length, DIMENSION)


def test_validate_vector_rejects_non_finite_and_nested():
    vector = unit_vector(0)
    vector[3] = float("nan")
    with pytest.raises(InvalidInputError):
        validate_vector(vector, DIMENSION)
    with pytest.raises(InvalidInputError):
        validate_vector([unit_vector(0)], DIMENSION)


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [100, 511, 513])
async def test_wrong_length_fails_before_store(service, memory_repository, length):
    vector = [0.5] * length
    with pytest.raises(InvalidInputError):
        await service.add("alice", vector)
    with pytest.raises(InvalidInputError):
        await service.validate(vector)
    with pytest.raises(InvalidInputError):
        await service.update(1, "alice", vector)
    assert memory_repository.calls == []


@pytest.mark.asyncio
async def test_add_then_get_round_trip(service):
    vector = list(np.linspace(-1.0, 1.0, DIMENSION))
    created = await service.add("alice", vector)

    fetched = await service.get(created.id)

    assert fetched.name == "alice"
    np.testing.assert_allclose(fetched.vector, vector, rtol=1e-6, atol=1e-6)


@pytest.mark.asyncio
async def test_validate_identical_vector_matches(service):
    created = await service.add("alice", unit_vector(0))

    match = await service.validate(unit_vector(0))

    assert match.id == created.id
    assert match.name == "alice"
    assert match.accuracy == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_validate_orthogonal_vector_not_found(service):
    await service.add("alice", unit_vector(0))

    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(1))


@pytest.mark.asyncio
async def test_store_failure_distinct_from_not_found(service, memory_repository):
    memory_repository.available = False

    with pytest.raises(EmbeddingStoreUnavailableError) as exc_info:
        await service.validate(unit_vector(0))
    assert not isinstance(exc_info.value, EmbeddingNotFoundError)


@pytest.mark.asyncio
async def test_delete_then_get_not_found(service):
    created = await service.add("alice", unit_vector(0))

    await service.delete(created.id)

    with pytest.raises(EmbeddingNotFoundError):
        await service.get(created.id)


@pytest.mark.asyncio
async def test_delete_missing_id_is_silent(service):
    await service.delete(12345)


@pytest.mark.asyncio
async def test_update_visible_to_get_and_validate(service):
    created = await service.add("alice", unit_vector(0))

    await service.update(created.id, "alice-2", unit_vector(5))

    fetched = await service.get(created.id)
    assert fetched.name == "alice-2"
    match = await service.validate(unit_vector(5))
    assert match.id == created.id
    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(0))


@pytest.mark.asyncio
async def test_update_missing_id_not_found(service):
    with pytest.raises(EmbeddingNotFoundError):
        await service.update(404, "ghost", unit_vector(0))


@pytest.mark.asyncio
async def test_list_returns_all(service):
    await service.add("alice", unit_vector(0))
    await service.add("bob", unit_vector(1))

    names = sorted(e.name for e in await service.list())

    assert names == ["alice", "bob"]


@pytest.mark.asyncio
async def test_validation_outcomes_recorded(memory_repository):
    metrics = MetricsCollector("test-service", registry=CollectorRegistry())
    service = EmbeddingService(memory_repository, vector_dimension=DIMENSION, metrics=metrics)
    await service.add("alice", unit_vector(0))

    await service.validate(unit_vector(0))
    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(1))

    output = metrics.get_metrics()
    assert 'embedding_validations_total{outcome="match"} 1.0' in output
    assert 'embedding_validations_total{outcome="no_match"} 1.0' in output


def test_validate_vector_rejects_zero_vector():
    with pytest.raises(InvalidInputError, match="non-zero"):
        validate_vector([0.0] * DIMENSION, DIMENSION)


@pytest.mark.asyncio
async def test_zero_vector_fails_before_store(service, memory_repository):
    zero = [0.0] * DIMENSION
    with pytest.raises(InvalidInputError):
        await service.add("nobody", zero)
    with pytest.raises(InvalidInputError):
        await service.validate(zero)
    with pytest.raises(InvalidInputError):
        await service.update(1, "nobody", zero)
    assert memory_repository.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("accuracy", [None, float("nan"), float("inf")])
async def test_match_without_finite_similarity_is_not_found(memory_repository, monkeypatch, accuracy):
    metrics = MetricsCollector("test-service", registry=CollectorRegistry())
    service = EmbeddingService(memory_repository, vector_dimension=DIMENSION, metrics=metrics)

    async def degenerate(vector):
        return Embedding(id=1, name="zero", vector=np.zeros(DIMENSION, dtype=np.float32), accuracy=accuracy)

    monkeypatch.setattr(memory_repository, "find_nearest", degenerate)

    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(0))
    assert 'embedding_validations_total{outcome="no_match"} 1.0' in metrics.get_metrics()


@pytest.mark.asyncio
async def test_similarity_equal_to_zero_threshold_is_not_a_match():
    service = EmbeddingService(InMemoryEmbeddingRepository(similarity_threshold=0.0), vector_dimension=DIMENSION)
    await service.add("alice", unit_vector(0))

    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(1))

    leaning = unit_vector(1)
    leaning[0] = 0.01
    match = await service.validate(leaning)
    assert match.name == "alice"
    assert match.accuracy > 0.0


@pytest.mark.asyncio
async def test_identical_vector_does_not_clear_threshold_of_one():
    service = EmbeddingService(InMemoryEmbeddingRepository(similarity_threshold=1.0), vector_dimension=DIMENSION)
    await service.add("alice", unit_vector(0))

    with pytest.raises(EmbeddingNotFoundError):
        await service.validate(unit_vector(0))
