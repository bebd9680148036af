"""Protocol for embedding model providers."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding model providers.

    Allows swapping between a local model server (Ollama), hosted APIs
    (OpenAI) or in-process models (sentence-transformers).
    """

    @property
    def dimension(self) -> int:
        """Return the fixed embedding width for this provider and model."""
        ...

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        ...

    async def embed_one(self, text: str) -> list[float]:
        """Generate the embedding for a single text."""
        ...

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of texts, in input order."""
        ...

    async def aclose(self) -> None:
        """Release network or model resources."""
        ...
