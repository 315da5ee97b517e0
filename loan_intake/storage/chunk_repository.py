"""SQLite-backed chunk repository."""

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from uuid import uuid4

from loan_intake.exceptions import StoreError
from loan_intake.models.chunk import Chunk
from loan_intake.storage.database import get_connection

logger = logging.getLogger(__name__)


class SqliteChunkRepository:
    """Stores chunk text keyed by an opaque id.

    Each call opens its own connection and runs in a worker thread, so the
    repository can be shared by concurrent tasks.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    async def save(self, file_name: str, text: str, sequence_index: int) -> str:
        """Persist one chunk and return its newly assigned id."""
        chunk_id = uuid4().hex
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO chunks (id, file_name, chunk_text, chunk_index, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (chunk_id, file_name, text, sequence_index, datetime.now().isoformat()),
        )
        return chunk_id

    async def find_by_ids(self, ids: Sequence[str]) -> list[Chunk]:
        """Fetch the chunks with the given ids. Missing ids are skipped."""
        if not ids:
            return []
        return await asyncio.to_thread(self._find_by_ids, list(ids))

    async def delete_by_id(self, id: str) -> bool:
        """Delete one chunk. Returns False if it was already gone."""
        rowcount = await asyncio.to_thread(
            self._execute, "DELETE FROM chunks WHERE id = ?", (id,)
        )
        return rowcount > 0

    async def delete_all(self) -> int:
        """Delete every chunk and return how many were removed."""
        return await asyncio.to_thread(self._execute, "DELETE FROM chunks", ())

    def _execute(self, sql: str, params: tuple) -> int:
        try:
            conn = get_connection(self._db_path)
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Chunk store write failed")
            raise StoreError(f"Chunk store write failed: {exc}") from exc

    def _find_by_ids(self, ids: list[str]) -> list[Chunk]:
        placeholders = ", ".join("?" for _ in ids)
        try:
            conn = get_connection(self._db_path)
            try:
                rows = conn.execute(
                    "SELECT id, file_name, chunk_text, chunk_index, created_at "
                    f"FROM chunks WHERE id IN ({placeholders})",
                    ids,
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            logger.exception("Chunk store read failed")
            raise StoreError(f"Chunk store read failed: {exc}") from exc

        return [
            Chunk(
                id=row["id"],
                file_name=row["file_name"],
                text=row["chunk_text"],
                sequence_index=row["chunk_index"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
