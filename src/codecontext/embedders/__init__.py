"""Embedding providers for vector generation."""

from codecontext.config import Settings
from codecontext.embedders.batcher import EmbeddedChunk, EmbeddingBatcher
from codecontext.embedders.ollama import OllamaEmbedder
from codecontext.embedders.openai import OpenAIEmbedder
from codecontext.errors import ConfigError
from codecontext.protocols import EmbeddingProvider


def create_embedder(settings: Settings) -> EmbeddingProvider:
    """Build the embedding provider selected by EMBEDDING_PROVIDER."""
    if settings.embedding_provider == "ollama":
        return OllamaEmbedder(
            host=settings.ollama_host,
            model=settings.embedding_model,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )

    if settings.embedding_provider == "openai":
        if not settings.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is required for the openai provider")
        return OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )

    if settings.embedding_provider == "sentence-transformers":
        # Import here to avoid loading torch unless needed
        from codecontext.embedders.sentence_transformer import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(settings.embedding_model)

    raise ConfigError(f"Unknown embedding provider: {settings.embedding_provider}")


__all__ = [
    "EmbeddedChunk",
    "EmbeddingBatcher",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "create_embedder",
]
