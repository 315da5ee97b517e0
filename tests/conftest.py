"""Shared fixtures: a temporary database and the fake service stack."""

from pathlib import Path

import pytest

from loan_intake.config import ChunkingConfig, ExtractionConfig
from loan_intake.ingestion.chunker import DocumentChunker
from loan_intake.ingestion.extractor import TextExtractor
from loan_intake.ingestion.pipeline import DocumentIngestor
from loan_intake.retrieval.retriever import RetrievalService
from loan_intake.storage.application_store import SqliteApplicationStore
from loan_intake.storage.chunk_repository import SqliteChunkRepository
from loan_intake.storage.database import initialize_database
from tests.fakes import FakeEmbedder, FakeVectorIndex


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "app.db"
    initialize_database(path)
    return path


@pytest.fixture
def repository(db_path: Path) -> SqliteChunkRepository:
    return SqliteChunkRepository(db_path)


@pytest.fixture
def store(db_path: Path) -> SqliteApplicationStore:
    return SqliteApplicationStore(db_path)


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def retriever(
    embedder: FakeEmbedder, index: FakeVectorIndex, repository: SqliteChunkRepository
) -> RetrievalService:
    return RetrievalService(embedder, index, repository, top_k=50, timeout_seconds=5)


@pytest.fixture
def ingestor(
    embedder: FakeEmbedder, index: FakeVectorIndex, repository: SqliteChunkRepository
) -> DocumentIngestor:
    return DocumentIngestor(
        TextExtractor(ExtractionConfig()),
        DocumentChunker(ChunkingConfig(max_words=1000)),
        repository,
        embedder,
        index,
    )
