"""Protocol for vector similarity stores."""

from typing import Any, Protocol, Sequence, runtime_checkable

from codecontext.models import SearchResult


@runtime_checkable
class VectorStore(Protocol):
    """Protocol for external vector stores.

    All operations may perform network I/O and raise VectorStoreError on
    failure, with the response body attached.
    """

    async def create_collection(self, name: str, dimension: int) -> None:
        """Create a collection; an existing collection counts as success."""
        ...

    async def insert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]],
    ) -> None:
        """Insert vectors with their metadata; lengths must match."""
        ...

    async def search(
        self, collection: str, vector: Sequence[float], limit: int
    ) -> list[SearchResult]:
        """Return up to `limit` results ranked by descending score."""
        ...

    async def delete_by_file(self, collection: str, file_path: str) -> None:
        """Delete every vector whose metadata `file_path` matches."""
        ...

    async def drop_collection(self, name: str) -> None:
        """Delete a collection and all of its vectors."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
