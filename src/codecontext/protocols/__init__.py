"""Protocol definitions for extensible components."""

from codecontext.protocols.chunker import ChunkingStrategy
from codecontext.protocols.embedder import EmbeddingProvider
from codecontext.protocols.ingester import Ingester
from codecontext.protocols.vector_store import VectorStore

__all__ = ["Ingester", "EmbeddingProvider", "ChunkingStrategy", "VectorStore"]
