"""Tests for the HTTP-backed embedding providers and Milvus store."""

import json

import httpx
import pytest

from codecontext.embedders import OllamaEmbedder, OpenAIEmbedder
from codecontext.embedders.ollama import dimension_for_model
from codecontext.errors import EmbeddingError, VectorStoreError
from codecontext.storage import MilvusVectorStore


def recording_transport(responses):
    """MockTransport replaying `responses` in order and recording requests."""
    requests = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return queue.pop(0)

    return httpx.MockTransport(handler), requests


class TestOllamaEmbedder:
    """Tests for OllamaEmbedder."""

    @pytest.mark.asyncio
    async def test_embed_one(self):
        transport, requests = recording_transport(
            [httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})]
        )
        embedder = OllamaEmbedder(host="http://ollama:11434/", model="nomic-embed-text", transport=transport)

        assert await embedder.embed_one("hello") == [0.1, 0.2, 0.3]
        assert str(requests[0].url) == "http://ollama:11434/api/embeddings"
        assert json.loads(requests[0].content) == {"model": "nomic-embed-text", "prompt": "hello"}
        await embedder.aclose()

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        transport, requests = recording_transport([httpx.Response(404, text="model not found")])
        embedder = OllamaEmbedder(transport=transport, max_retries=3)

        with pytest.raises(EmbeddingError) as exc_info:
            await embedder.embed_one("hello")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "model not found"
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        transport, _ = recording_transport([httpx.Response(200, json={"nope": 1})])
        with pytest.raises(EmbeddingError, match="parse"):
            await OllamaEmbedder(transport=transport).embed_one("x")

    @pytest.mark.parametrize(
        "model,dimension",
        [("nomic-embed-text", 768), ("mxbai-embed-large", 1024), ("all-minilm", 384), ("other", 768)],
    )
    def test_dimension_for_model(self, model, dimension):
        assert dimension_for_model(model) == dimension


class TestOpenAIEmbedder:
    """Tests for OpenAIEmbedder."""

    @pytest.mark.asyncio
    async def test_embed_many_restores_input_order(self):
        transport, requests = recording_transport(
            [
                httpx.Response(
                    200,
                    json={
                        "data": [
                            {"index": 1, "embedding": [2.0]},
                            {"index": 0, "embedding": [1.0]},
                        ]
                    },
                )
            ]
        )
        embedder = OpenAIEmbedder(api_key="sk-test", base_url="http://api/v1", transport=transport)

        assert await embedder.embed_many(["a", "b"]) == [[1.0], [2.0]]
        assert requests[0].headers["Authorization"] == "Bearer sk-test"
        assert str(requests[0].url) == "http://api/v1/embeddings"
        assert embedder.dimension == 1536

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        transport, requests = recording_transport(
            [
                httpx.Response(503, text="busy"),
                httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5]}]}),
            ]
        )
        embedder = OpenAIEmbedder(api_key="k", transport=transport, max_retries=2)

        assert await embedder.embed_one("x") == [0.5]
        assert len(requests) == 2


class TestMilvusVectorStore:
    """Tests for MilvusVectorStore."""

    @pytest.mark.asyncio
    async def test_create_collection_payload(self):
        transport, requests = recording_transport([httpx.Response(200, json={"code": 0, "data": {}})])
        store = MilvusVectorStore(address="http://milvus:19530", token="secret", transport=transport)

        await store.create_collection("code_index_abc", 768)

        request = requests[0]
        assert str(request.url) == "http://milvus:19530/v2/vectordb/collections/create"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content) == {
            "collectionName": "code_index_abc",
            "dimension": 768,
            "metricType": "COSINE",
            "autoID": True,
        }

    @pytest.mark.asyncio
    async def test_create_existing_collection_is_ok(self):
        transport, _ = recording_transport(
            [httpx.Response(200, json={"code": 65535, "message": "collection already exists"})]
        )
        await MilvusVectorStore(transport=transport).create_collection("c", 4)

    @pytest.mark.asyncio
    async def test_application_error_is_not_retried(self):
        transport, requests = recording_transport(
            [httpx.Response(200, json={"code": 1100, "message": "invalid dimension"})]
        )
        store = MilvusVectorStore(transport=transport, max_retries=3)

        with pytest.raises(VectorStoreError, match="invalid dimension"):
            await store.insert("c", [[0.1]], [{"file_path": "a"}])
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_insert_payload(self):
        transport, requests = recording_transport([httpx.Response(200, json={"code": 0})])
        await MilvusVectorStore(transport=transport).insert(
            "c", [[0.1, 0.2]], [{"file_path": "a.py"}]
        )
        assert json.loads(requests[0].content) == {
            "collectionName": "c",
            "data": [{"vector": [0.1, 0.2], "metadata": {"file_path": "a.py"}}],
        }

    @pytest.mark.asyncio
    async def test_insert_length_mismatch(self):
        transport, requests = recording_transport([])
        with pytest.raises(VectorStoreError):
            await MilvusVectorStore(transport=transport).insert("c", [[0.1]], [])
        assert requests == []

    @pytest.mark.asyncio
    async def test_search_parses_hits(self):
        transport, requests = recording_transport(
            [
                httpx.Response(
                    200,
                    json={
                        "code": 0,
                        "cost": 250,
                        "data": [
                            {"id": 1, "distance": 0.9, "metadata": {"file_path": "a.py"}},
                            {"id": 2, "distance": 0.4, "file_path": "b.py", "start_line": 3},
                        ],
                    },
                )
            ]
        )

        results = await MilvusVectorStore(transport=transport).search("c", [0.1, 0.2], 2)

        assert [(r.score, r.file_path) for r in results] == [(0.9, "a.py"), (0.4, "b.py")]
        assert results[1].metadata == {"file_path": "b.py", "start_line": 3}
        body = json.loads(requests[0].content)
        assert body["limit"] == 2
        assert body["data"] == [[0.1, 0.2]]
        assert body["outputFields"] == ["metadata"]

    @pytest.mark.asyncio
    async def test_drop_collection(self):
        transport, requests = recording_transport([httpx.Response(200, json={"code": 0})])
        await MilvusVectorStore(transport=transport).drop_collection("c")
        assert requests[0].url.path == "/v2/vectordb/collections/drop"
        assert json.loads(requests[0].content) == {"collectionName": "c"}

    @pytest.mark.asyncio
    async def test_delete_by_file_filters_on_quoted_path(self):
        transport, requests = recording_transport([httpx.Response(200, json={"code": 0})])
        await MilvusVectorStore(transport=transport).delete_by_file("c", '/p/say "hi".py')
        assert requests[0].url.path == "/v2/vectordb/entities/delete"
        assert json.loads(requests[0].content) == {
            "collectionName": "c",
            "filter": 'metadata["file_path"] == "/p/say \\"hi\\".py"',
        }

    @pytest.mark.asyncio
    async def test_retries_then_gives_up(self):
        transport, requests = recording_transport(
            [httpx.Response(500, text="down"), httpx.Response(500, text="down")]
        )
        with pytest.raises(VectorStoreError) as exc_info:
            await MilvusVectorStore(transport=transport, max_retries=2).drop_collection("c")
        assert exc_info.value.status_code == 500
        assert len(requests) == 2
