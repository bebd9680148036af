"""Bounded-concurrency fan-out of chunk texts to an embedding provider."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from codecontext.models import Chunk
from codecontext.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5


@dataclass(frozen=True)
class EmbeddedChunk:
    """A vector paired with the index of the chunk it was computed from."""

    index: int
    vector: list[float]


class EmbeddingBatcher:
    """Embed many texts with at most `concurrency` requests in flight.

    Each request is independent: a failure is logged and that item is
    dropped without cancelling its siblings. Results carry their input
    index so callers pair vectors with chunks by identity.
    """

    def __init__(self, provider: EmbeddingProvider, concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._provider = provider
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def embed_texts(self, texts: Sequence[str]) -> list[EmbeddedChunk]:
        """Embed texts, returning successes ordered by input index."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def embed(index: int, text: str) -> EmbeddedChunk | None:
            async with semaphore:
                try:
                    vector = await self._provider.embed_one(text)
                except Exception as e:
                    logger.warning("Embedding failed for item %d: %s", index, e)
                    return None
            return EmbeddedChunk(index=index, vector=vector)

        results = await asyncio.gather(
            *(embed(index, text) for index, text in enumerate(texts))
        )
        return [result for result in results if result is not None]

    async def embed_chunks(self, chunks: Sequence[Chunk]) -> list[EmbeddedChunk]:
        """Embed chunks using their `content + newline + symbol name` text."""
        return await self.embed_texts([chunk.embedding_text() for chunk in chunks])
