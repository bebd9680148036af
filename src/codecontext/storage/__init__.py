"""Vector store backends."""

from codecontext.config import Settings
from codecontext.errors import ConfigError
from codecontext.protocols import VectorStore
from codecontext.storage.milvus import MilvusVectorStore
from codecontext.storage.sqlite_store import SqliteVectorStore


def create_vector_store(settings: Settings) -> VectorStore:
    """Build the vector store selected by VECTOR_STORE."""
    if settings.vector_store == "milvus":
        return MilvusVectorStore(
            address=settings.milvus_address,
            token=settings.milvus_token,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
    if settings.vector_store == "sqlite":
        return SqliteVectorStore(settings.sqlite_store_path)
    raise ConfigError(f"Unknown vector store: {settings.vector_store}")


__all__ = ["MilvusVectorStore", "SqliteVectorStore", "create_vector_store"]
