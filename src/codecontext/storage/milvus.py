"""Milvus vector store client (REST API v2)."""

import json
import logging
from typing import Any, Optional, Sequence

import httpx

from codecontext.errors import VectorStoreError
from codecontext.models import SearchResult
from codecontext.utils import with_retries

logger = logging.getLogger(__name__)

METRIC_TYPE = "COSINE"
SLOW_SEARCH_MS = 100


def file_filter(file_path: str) -> str:
    """Boolean expression selecting entities stored for one file."""
    # JSON string literals use the same escapes as Milvus string literals
    return f'metadata["file_path"] == {json.dumps(file_path)}'


class MilvusVectorStore:
    """Vector store talking to Milvus over its HTTP API."""

    DEFAULT_ADDRESS = "http://127.0.0.1:19530"

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        token: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._address = address.rstrip("/")
        self._max_retries = max_retries
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, headers=headers)

    async def create_collection(self, name: str, dimension: int) -> None:
        try:
            await self._call(
                "collections/create",
                {
                    "collectionName": name,
                    "dimension": dimension,
                    "metricType": METRIC_TYPE,
                    "autoID": True,
                },
            )
        except VectorStoreError as e:
            if "already exist" in str(e).lower():
                logger.debug("Collection already exists: %s", name)
                return
            raise
        logger.debug("Created collection: %s", name)

    async def insert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]],
    ) -> None:
        if len(vectors) != len(metadata):
            raise VectorStoreError("Vectors and metadata length mismatch")
        data = [
            {"vector": list(vector), "metadata": meta}
            for vector, meta in zip(vectors, metadata)
        ]
        await self._call("entities/insert", {"collectionName": collection, "data": data})

    async def search(
        self, collection: str, vector: Sequence[float], limit: int
    ) -> list[SearchResult]:
        body = await self._call(
            "entities/search",
            {
                "collectionName": collection,
                "data": [list(vector)],
                "limit": limit,
                "outputFields": ["metadata"],
                "metricType": METRIC_TYPE,
            },
        )

        hits = body.get("data") or []
        cost_ms = body.get("cost") or 0
        if cost_ms > SLOW_SEARCH_MS:
            logger.warning(
                "Slow search detected: %dms, collection=%s, results=%d",
                cost_ms,
                collection,
                len(hits),
            )
        else:
            logger.debug(
                "Search completed: %dms, collection=%s, results=%d",
                cost_ms,
                collection,
                len(hits),
            )

        results = []
        for hit in hits:
            score = hit.get("distance", hit.get("score", 0.0))
            metadata = hit.get("metadata")
            if not isinstance(metadata, dict):
                # Metadata may come back flattened into the hit itself
                metadata = {
                    k: v for k, v in hit.items() if k not in ("distance", "score", "id", "vector")
                }
            results.append(SearchResult(score=float(score), metadata=metadata))
        return results

    async def delete_by_file(self, collection: str, file_path: str) -> None:
        await self._call(
            "entities/delete",
            {"collectionName": collection, "filter": file_filter(file_path)},
        )

    async def drop_collection(self, name: str) -> None:
        await self._call("collections/drop", {"collectionName": name})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await with_retries(
            lambda: self._post(endpoint, payload),
            attempts=self._max_retries,
            description=f"Milvus {endpoint}",
        )

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._address}/v2/vectordb/{endpoint}"
        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise VectorStoreError(f"Failed to send {endpoint} request: {e}") from e

        if not response.is_success:
            raise VectorStoreError(
                f"Milvus API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise VectorStoreError(
                f"Failed to parse {endpoint} response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        code = body.get("code", 0)
        if code not in (0, 200):
            # Application-level errors arrive with HTTP 200; don't retry them
            raise VectorStoreError(
                f"Milvus {endpoint} error ({code}): {body.get('message', '')}",
                status_code=400,
                body=response.text,
            )
        return body
