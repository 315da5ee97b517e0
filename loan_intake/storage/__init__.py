"""Persistence: SQLite records and the Chroma vector index."""

from loan_intake.storage.application_store import SqliteApplicationStore
from loan_intake.storage.chunk_repository import SqliteChunkRepository
from loan_intake.storage.database import get_connection, initialize_database
from loan_intake.storage.vector_index import ChromaVectorIndex

__all__ = [
    "ChromaVectorIndex",
    "SqliteApplicationStore",
    "SqliteChunkRepository",
    "get_connection",
    "initialize_database",
]
