from unittest.mock import AsyncMock, Mock

import pytest
from openai import APITimeoutError

from rag_kit.embeddings.base import Embedding
from rag_kit.embeddings.openai import OpenAIEmbeddingsClient
from rag_kit.errors import EmbeddingMismatchError
from rag_kit.observability import names
from rag_kit.observability.base import InMemoryMetricsHook


def _mock_response(num_embeddings: int, dim: int = 3) -> Mock:
    """Create a mock response with the given number of embeddings."""
    return Mock(data=[Mock(embedding=[0.1] * dim) for _ in range(num_embeddings)])


def _client(**kwargs) -> tuple[OpenAIEmbeddingsClient, AsyncMock]:
    client = OpenAIEmbeddingsClient(api_key="fake", model="fake-model", **kwargs)
    mock_client = AsyncMock()
    client._client = mock_client
    return client, mock_client


@pytest.mark.asyncio
async def test_embed_returns_one_vector_per_input() -> None:
    client, mock_client = _client()
    mock_client.embeddings.create.return_value = _mock_response(3)

    embeddings = await client.embed(["a", "b", "c"])

    assert len(embeddings) == 3
    assert all(isinstance(e, Embedding) for e in embeddings)
    assert all(isinstance(e.vector, list) for e in embeddings)


@pytest.mark.asyncio
async def test_embed_respects_batch_size() -> None:
    """Texts are batched according to batch_size."""
    client, mock_client = _client(batch_size=2)
    mock_client.embeddings.create.side_effect = [
        _mock_response(2),
        _mock_response(2),
        _mock_response(1),
    ]

    embeddings = await client.embed(["a", "b", "c", "d", "e"])

    assert len(embeddings) == 5
    calls = mock_client.embeddings.create.call_args_list
    assert [len(call.kwargs["input"]) for call in calls] == [2, 2, 1]


@pytest.mark.asyncio
async def test_embed_retries_then_succeeds() -> None:
    client, mock_client = _client()
    mock_client.embeddings.create.side_effect = [
        APITimeoutError(request=Mock()),  # type: ignore[arg-type]
        _mock_response(1),
    ]

    embeddings = await client.embed(["test"])

    assert len(embeddings) == 1
    assert mock_client.embeddings.create.call_count == 2


@pytest.mark.asyncio
async def test_embed_raises_on_timeout() -> None:
    client, mock_client = _client()
    mock_client.embeddings.create.side_effect = APITimeoutError(request=Mock())  # type: ignore[arg-type]

    with pytest.raises(APITimeoutError):
        await client.embed(["test"])

    assert mock_client.embeddings.create.call_count == 3


@pytest.mark.asyncio
async def test_embed_with_empty_input() -> None:
    """Empty input returns an empty list without calling the API."""
    client, mock_client = _client()

    embeddings = await client.embed([])

    assert embeddings == []
    mock_client.embeddings.create.assert_not_called()


@pytest.mark.asyncio
async def test_embed_rejects_short_batch() -> None:
    hook = InMemoryMetricsHook()
    client, mock_client = _client(metrics_hook=hook)
    mock_client.embeddings.create.return_value = _mock_response(2)

    with pytest.raises(EmbeddingMismatchError) as exc_info:
        await client.embed(["a", "b", "c"])

    assert exc_info.value.expected == 3
    assert exc_info.value.actual == 2
    assert hook.counters[names.EMBEDDINGS_ERRORS_TOTAL] == 1


@pytest.mark.asyncio
async def test_embed_rejects_wrong_dimensions() -> None:
    client, mock_client = _client(dimensions=4)
    mock_client.embeddings.create.return_value = _mock_response(1, dim=3)

    with pytest.raises(EmbeddingMismatchError, match="4-dimensional"):
        await client.embed(["a"])


@pytest.mark.asyncio
async def test_embed_records_metrics() -> None:
    hook = InMemoryMetricsHook()
    client, mock_client = _client(metrics_hook=hook)
    mock_client.embeddings.create.return_value = _mock_response(2)

    await client.embed(["a", "b"])

    assert hook.counters[names.EMBEDDINGS_REQUESTS_TOTAL] == 1
    assert hook.gauges[names.EMBEDDINGS_BATCH_SIZE] == [2]
    assert len(hook.latencies[names.EMBEDDINGS_DURATION]) == 1
