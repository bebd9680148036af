"""OpenAI-compatible embedding provider (hosted API)."""

import logging
from typing import Any, Optional

import httpx

from codecontext.errors import EmbeddingError
from codecontext.utils import with_retries

logger = logging.getLogger(__name__)

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedder:
    """Embedding provider for the OpenAI /embeddings API and compatible servers."""

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._dimension = MODEL_DIMENSIONS.get(model, 1536)
        self._max_retries = max_retries
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model

    async def embed_one(self, text: str) -> list[float]:
        embeddings = await self.embed_many([text])
        if not embeddings:
            raise EmbeddingError("No embedding returned")
        return embeddings[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await with_retries(
            lambda: self._embed_batch(texts),
            attempts=self._max_retries,
            description="OpenAI embedding",
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            response = await self._client.post(
                f"{self._base_url}/embeddings",
                json={"model": self._model, "input": texts},
            )
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Failed to send request to OpenAI: {e}") from e

        if not response.is_success:
            raise EmbeddingError(
                f"OpenAI API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data: list[dict[str, Any]] = response.json()["data"]
            # Sort by index to maintain input order
            data.sort(key=lambda item: item["index"])
            return [[float(v) for v in item["embedding"]] for item in data]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(
                f"Failed to parse OpenAI response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
