"""Contracts for the external services the pipeline depends on.

Production bindings live in ``loan_intake.providers`` and
``loan_intake.storage``; tests pass in-memory doubles that satisfy the same
protocols.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from loan_intake.models.chunk import Chunk
from loan_intake.models.results import IndexMatch


class EmbeddingProvider(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class VectorIndex(Protocol):
    async def upsert(self, id: str, vector: list[float]) -> None: ...

    async def query(
        self, vector: list[float], top_k: int, ids: Sequence[str] | None = None
    ) -> list[IndexMatch]: ...

    async def delete(self, ids: Sequence[str]) -> None: ...

    async def delete_all(self) -> None: ...


class ChunkRepository(Protocol):
    async def save(self, file_name: str, text: str, sequence_index: int) -> str: ...

    async def find_by_ids(self, ids: Sequence[str]) -> list[Chunk]: ...

    async def delete_by_id(self, id: str) -> bool: ...

    async def delete_all(self) -> int: ...


class LanguageModel(Protocol):
    async def complete(
        self, messages: list[dict[str, str]], schema: dict[str, Any], name: str
    ) -> dict[str, Any]: ...

    async def answer(self, messages: list[dict[str, str]]) -> str: ...
