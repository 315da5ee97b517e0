"""Result models for ingestion, retrieval and cleanup."""

from pydantic import BaseModel, Field

from loan_intake.models.chunk import Chunk


class IndexMatch(BaseModel):
    """A single vector index hit."""

    id: str
    score: float


class RetrievedContext(BaseModel):
    """Chunks selected for one query, in document order."""

    query: str
    chunks: list[Chunk] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(chunk.text for chunk in self.chunks)


class ChunkOutcome(BaseModel):
    """Result of persisting and indexing one chunk."""

    sequence_index: int
    chunk_id: str | None = None
    indexed: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.indexed


class FileIngestionResult(BaseModel):
    """Per-file outcome of an ingestion batch."""

    file_name: str
    chunks: list[ChunkOutcome] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(outcome.ok for outcome in self.chunks)

    @property
    def chunk_ids(self) -> list[str]:
        """Ids of persisted chunks, ordered by sequence index."""
        ordered = sorted(self.chunks, key=lambda outcome: outcome.sequence_index)
        return [outcome.chunk_id for outcome in ordered if outcome.chunk_id]

    @property
    def failure_reason(self) -> str | None:
        if self.error:
            return self.error
        for outcome in self.chunks:
            if not outcome.ok:
                return f"chunk {outcome.sequence_index}: {outcome.error}"
        return None


class IngestionReport(BaseModel):
    """Aggregated outcome of ingesting a batch of files."""

    files: list[FileIngestionResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.files)

    @property
    def first_failure(self) -> FileIngestionResult | None:
        for result in self.files:
            if not result.ok:
                return result
        return None


class CleanupReport(BaseModel):
    """Outcome of deleting an application and everything it references."""

    application_id: str
    deleted_chunk_ids: list[str] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)
    analyses_deleted: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


class QuestionAnswer(BaseModel):
    """A model answer to an ad-hoc question and the chunks it was based on."""

    question: str
    answer: str
    chunk_ids: list[str] = Field(default_factory=list)
