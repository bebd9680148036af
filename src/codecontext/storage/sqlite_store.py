"""SQLite-backed local vector store."""

import asyncio
import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

import numpy as np

from codecontext.errors import VectorStoreError
from codecontext.models import SearchResult
from codecontext.storage.schema import SCHEMA


class SqliteVectorStore:
    """Single-file vector store with brute-force cosine similarity search.

    Suitable for offline use and small corpora; every call runs in a
    worker thread with its own connection.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._initialized = False

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        self._initialized = True

    async def create_collection(self, name: str, dimension: int) -> None:
        await asyncio.to_thread(self._create_collection, name, dimension)

    async def insert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]],
    ) -> None:
        if len(vectors) != len(metadata):
            raise VectorStoreError("Vectors and metadata length mismatch")
        await asyncio.to_thread(self._insert, collection, vectors, metadata)

    async def search(
        self, collection: str, vector: Sequence[float], limit: int
    ) -> list[SearchResult]:
        return await asyncio.to_thread(self._search, collection, vector, limit)

    async def delete_by_file(self, collection: str, file_path: str) -> None:
        await asyncio.to_thread(self._delete_by_file, collection, file_path)

    async def drop_collection(self, name: str) -> None:
        await asyncio.to_thread(self._drop_collection, name)

    async def aclose(self) -> None:
        return None

    def list_collections(self) -> list[str]:
        """Names of all collections (for diagnostics)."""
        self._ensure_schema()
        with self.connection() as conn:
            rows = conn.execute("SELECT name FROM collections ORDER BY name")
            return [row["name"] for row in rows]

    def _ensure_schema(self) -> None:
        if not self._initialized:
            self.initialize()

    def _dimension(self, conn: sqlite3.Connection, collection: str) -> int:
        row = conn.execute(
            "SELECT dimension FROM collections WHERE name = ?", (collection,)
        ).fetchone()
        if row is None:
            raise VectorStoreError(f"Collection not found: {collection}")
        return int(row["dimension"])

    def _create_collection(self, name: str, dimension: int) -> None:
        self._ensure_schema()
        with self.connection() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO collections (name, dimension) VALUES (?, ?)",
                (name, dimension),
            )

    def _insert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]],
    ) -> None:
        self._ensure_schema()
        with self.connection() as conn:
            dimension = self._dimension(conn, collection)
            for vector, meta in zip(vectors, metadata):
                embedding = np.asarray(vector, dtype=np.float32)
                if embedding.shape != (dimension,):
                    raise VectorStoreError(
                        f"Vector dimension {embedding.shape[-1]} does not match "
                        f"collection dimension {dimension}"
                    )
                conn.execute(
                    "INSERT INTO entities (collection, file_path, embedding, metadata) "
                    "VALUES (?, ?, ?, ?)",
                    (collection, meta.get("file_path"), embedding.tobytes(), json.dumps(meta)),
                )

    def _search(
        self, collection: str, vector: Sequence[float], limit: int
    ) -> list[SearchResult]:
        self._ensure_schema()
        with self.connection() as conn:
            self._dimension(conn, collection)
            rows = conn.execute(
                "SELECT embedding, metadata FROM entities WHERE collection = ?",
                (collection,),
            ).fetchall()

        if not rows or limit <= 0:
            return []

        matrix = np.stack([np.frombuffer(row["embedding"], dtype=np.float32) for row in rows])
        scores = self._cosine_similarity(np.asarray(vector, dtype=np.float32), matrix)
        top = np.argsort(-scores, kind="stable")[:limit]
        return [
            SearchResult(score=float(scores[i]), metadata=json.loads(rows[i]["metadata"]))
            for i in top
        ]

    def _delete_by_file(self, collection: str, file_path: str) -> None:
        self._ensure_schema()
        with self.connection() as conn:
            self._dimension(conn, collection)
            conn.execute(
                "DELETE FROM entities WHERE collection = ? AND file_path = ?",
                (collection, file_path),
            )

    def _drop_collection(self, name: str) -> None:
        self._ensure_schema()
        with self.connection() as conn:
            conn.execute("DELETE FROM entities WHERE collection = ?", (name,))
            conn.execute("DELETE FROM collections WHERE name = ?", (name,))

    @staticmethod
    def _cosine_similarity(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
        """Cosine similarity between one query vector and each matrix row."""
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)
