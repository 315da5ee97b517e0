"""Chroma-backed vector index for chunk embeddings."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import chromadb
from chromadb.config import Settings

from loan_intake.exceptions import VectorIndexError
from loan_intake.models.results import IndexMatch

logger = logging.getLogger(__name__)

CHUNK_ID_KEY = "chunk_id"


class ChromaVectorIndex:
    """Stores one vector per chunk id in a Chroma collection.

    Only ids and vectors are stored: chunk text lives in the chunk
    repository. The id is repeated as ``chunk_id`` metadata so queries can
    be scoped to a set of chunks. The collection uses cosine distance, and
    query scores are reported as ``1 - distance`` so higher means more
    similar.

    Args:
        client: A chromadb client (persistent in production).
        collection_name: Name of the collection holding chunk vectors.
    """

    def __init__(self, client: Any, collection_name: str) -> None:
        self._client = client
        self._collection_name = collection_name
        self._collection = self._open_collection()

    @classmethod
    def persistent(cls, path: str, collection_name: str) -> "ChromaVectorIndex":
        client = chromadb.PersistentClient(
            path=path, settings=Settings(anonymized_telemetry=False)
        )
        return cls(client, collection_name)

    def _open_collection(self) -> Any:
        return self._client.get_or_create_collection(
            name=self._collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )

    async def upsert(self, id: str, vector: list[float]) -> None:
        await self._run("upsert", self._upsert, id, vector)

    async def query(
        self,
        vector: list[float],
        top_k: int,
        ids: Sequence[str] | None = None,
    ) -> list[IndexMatch]:
        """Return up to ``top_k`` nearest ids, best score first.

        If ``ids`` is given, only entries with those ids are candidates.
        """
        if ids is not None and not ids:
            return []
        scope = list(ids) if ids is not None else None
        return await self._run("query", self._query, vector, top_k, scope)

    async def delete(self, ids: Sequence[str]) -> None:
        if ids:
            await self._run("delete", self._delete, list(ids))

    async def delete_all(self) -> None:
        await self._run("delete_all", self._delete_all)

    async def count(self) -> int:
        return await self._run("count", self._collection.count)

    async def _run(self, operation: str, func: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except VectorIndexError:
            raise
        except Exception as exc:
            logger.exception("Vector index %s failed", operation)
            raise VectorIndexError(
                f"Vector index {operation} failed: {exc}",
                operation=operation,
                details={"collection": self._collection_name},
            ) from exc

    def _upsert(self, id: str, vector: list[float]) -> None:
        self._collection.upsert(
            ids=[id], embeddings=[vector], metadatas=[{CHUNK_ID_KEY: id}]
        )

    def _query(
        self, vector: list[float], top_k: int, scope: list[str] | None
    ) -> list[IndexMatch]:
        if scope is None:
            available = self._collection.count()
            where = None
        else:
            # n_results must not exceed the entries in scope
            available = len(self._collection.get(ids=scope, include=[])["ids"])
            where = {CHUNK_ID_KEY: {"$in": scope}}
        if available == 0:
            return []
        result = self._collection.query(
            query_embeddings=[vector],
            n_results=min(top_k, available),
            where=where,
            include=["distances"],
        )
        ids = result["ids"][0]
        distances = result["distances"][0]
        return [
            IndexMatch(id=match_id, score=1.0 - float(distance))
            for match_id, distance in zip(ids, distances)
        ]

    def _delete(self, ids: list[str]) -> None:
        self._collection.delete(ids=ids)

    def _delete_all(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._collection = self._open_collection()
