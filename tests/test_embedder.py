import json

import httpx
import pytest

from knowhow_rag.embeddings.embedder import Embedder, EmbeddingError


def embedder_with(handler, dimension=3, batch_size=2):
    return Embedder(
        api_key="sk-test",
        model="embed-model",
        dimension=dimension,
        base_url="https://llm.test/v1",
        batch_size=batch_size,
        transport=httpx.MockTransport(handler),
    )


def echo_handler(requests):
    def handler(request):
        payload = json.loads(request.read())
        requests.append(payload)
        data = [{"embedding": [float(len(text)), 0.0, 1.0]} for text in payload["input"]]
        return httpx.Response(200, json={"data": data})
    return handler


@pytest.mark.asyncio
async def test_batches_preserve_order():
    requests = []
    embedder = embedder_with(echo_handler(requests))

    vectors = await embedder.embed(["a", "bb", "ccc"])

    assert [v[0] for v in vectors] == [1.0, 2.0, 3.0]
    assert [r["input"] for r in requests] == [["a", "bb"], ["ccc"]]
    assert requests[0]["model"] == "embed-model"
    assert requests[0]["dimensions"] == 3


@pytest.mark.asyncio
async def test_embed_query():
    embedder = embedder_with(echo_handler([]))
    assert await embedder.embed_query("abcd") == [4.0, 0.0, 1.0]


@pytest.mark.asyncio
async def test_empty_input_makes_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    assert await embedder_with(handler).embed([]) == []


@pytest.mark.asyncio
async def test_http_failure_raises_embedding_error():
    embedder = embedder_with(lambda request: httpx.Response(429))

    with pytest.raises(EmbeddingError):
        await embedder.embed(["a"])


@pytest.mark.asyncio
async def test_non_json_reply_raises_embedding_error():
    embedder = embedder_with(
        lambda request: httpx.Response(200, content=b"<html>proxy error</html>")
    )

    with pytest.raises(EmbeddingError):
        await embedder.embed(["a"])


@pytest.mark.asyncio
async def test_wrong_dimension_rejected():
    embedder = embedder_with(
        lambda request: httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2]}]})
    )

    with pytest.raises(EmbeddingError):
        await embedder.embed(["a"])


@pytest.mark.asyncio
async def test_count_mismatch_rejected():
    embedder = embedder_with(
        lambda request: httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})
    )

    with pytest.raises(EmbeddingError):
        await embedder.embed(["a", "b"])
