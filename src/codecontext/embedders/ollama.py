"""Ollama embedding provider (locally hosted model server)."""

import logging
from typing import Any, Optional

import httpx

from codecontext.errors import EmbeddingError
from codecontext.utils import with_retries

logger = logging.getLogger(__name__)


def dimension_for_model(model: str) -> int:
    """Embedding width for well-known Ollama embedding models."""
    if "nomic" in model:
        return 768
    if "mxbai" in model:
        return 1024
    if "all-minilm" in model:
        return 384
    return 768


class OllamaEmbedder:
    """Embedding provider backed by an Ollama server's /api/embeddings endpoint."""

    DEFAULT_HOST = "http://127.0.0.1:11434"
    DEFAULT_MODEL = "nomic-embed-text"

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._host = host.rstrip("/")
        self._model = model
        self._dimension = dimension_for_model(model)
        self._max_retries = max_retries
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model

    async def embed_one(self, text: str) -> list[float]:
        return await with_retries(
            lambda: self._embed_single(text),
            attempts=self._max_retries,
            description="Ollama embedding",
        )

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        # Ollama has no batch endpoint; process sequentially
        return [await self.embed_one(text) for text in texts]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _embed_single(self, text: str) -> list[float]:
        url = f"{self._host}/api/embeddings"
        try:
            response = await self._client.post(
                url, json={"model": self._model, "prompt": text}
            )
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Failed to send request to Ollama: {e}") from e

        if not response.is_success:
            raise EmbeddingError(
                f"Ollama API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data: dict[str, Any] = response.json()
            return [float(v) for v in data["embedding"]]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(
                f"Failed to parse Ollama response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
