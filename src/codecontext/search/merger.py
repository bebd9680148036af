"""Fan a query vector out to project collections and merge the hits."""

import asyncio
import logging
from typing import Optional, Sequence

from codecontext.models import SearchResult
from codecontext.protocols import VectorStore
from codecontext.registry import ProjectRegistry

logger = logging.getLogger(__name__)


class SearchMerger:
    """Searches one project collection or all of them concurrently.

    Cross-project search caps each collection at `limit`, then keeps the
    global top `limit` by score. Projects with many strong matches can
    therefore crowd out the others.
    """

    def __init__(self, registry: ProjectRegistry, vector_store: VectorStore):
        self.registry = registry
        self.vector_store = vector_store

    async def search_project(
        self, project_root: str, vector: Sequence[float], limit: int
    ) -> Optional[list[SearchResult]]:
        """Search one project; None if it has not been indexed."""
        collection_name = self.registry.get_collection_name(project_root)
        if collection_name is None:
            return None
        return await self.vector_store.search(collection_name, vector, limit)

    async def search_all(self, vector: Sequence[float], limit: int) -> list[SearchResult]:
        """Search every resident project and merge by descending score."""
        collections = self.registry.get_all_collection_names()
        if not collections:
            return []

        per_project = await asyncio.gather(
            *(
                self._search_tagged(project_root, collection_name, vector, limit)
                for project_root, collection_name in collections
            )
        )

        merged = [result for results in per_project for result in results]
        merged.sort(key=lambda result: result.score, reverse=True)
        return merged[:limit]

    async def _search_tagged(
        self,
        project_root: str,
        collection_name: str,
        vector: Sequence[float],
        limit: int,
    ) -> list[SearchResult]:
        try:
            results = await self.vector_store.search(collection_name, vector, limit)
        except Exception as e:
            logger.warning("Failed to search collection %s: %s", collection_name, e)
            return []
        for result in results:
            result.metadata["project_root"] = project_root
        return results
