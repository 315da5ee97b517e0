"""Document ingestion: extract, chunk, persist and index uploaded files."""

import asyncio
import logging
from collections.abc import Sequence

from loan_intake.exceptions import IngestionError, LoanIntakeError
from loan_intake.ingestion.chunker import DocumentChunker
from loan_intake.ingestion.extractor import TextExtractor
from loan_intake.interfaces import ChunkRepository, EmbeddingProvider, VectorIndex
from loan_intake.models.chunk import UploadedFile
from loan_intake.models.results import ChunkOutcome, FileIngestionResult, IngestionReport

logger = logging.getLogger(__name__)


class DocumentIngestor:
    """Turns uploaded files into stored, indexed chunks.

    Per chunk the repository write always completes before the vector
    upsert, so every index entry resolves to stored text. Chunks and files
    are otherwise processed concurrently. Failures are collected per chunk
    and per file instead of aborting unrelated work.

    Args:
        extractor: PDF/OCR text extractor.
        chunker: Text chunker.
        repository: Chunk repository.
        embedder: Embedding provider.
        index: Vector index.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: DocumentChunker,
        repository: ChunkRepository,
        embedder: EmbeddingProvider,
        index: VectorIndex,
    ) -> None:
        self._extractor = extractor
        self._chunker = chunker
        self._repository = repository
        self._embedder = embedder
        self._index = index

    async def ingest_file(self, upload: UploadedFile) -> FileIngestionResult:
        """Ingest a single file. Never raises for pipeline failures.

        Args:
            upload: The uploaded file.

        Returns:
            The per-file result, carrying an error if extraction failed or
            any chunk could not be stored or indexed.
        """
        try:
            text = await self._extractor.extract(upload.data, upload.file_name)
        except LoanIntakeError as exc:
            logger.error("Extraction failed for %s: %s", upload.file_name, exc.message)
            return FileIngestionResult(file_name=upload.file_name, error=exc.message)

        pieces = self._chunker.chunk(text)
        if not pieces:
            logger.error("No text extracted from %s", upload.file_name)
            return FileIngestionResult(
                file_name=upload.file_name, error="No text could be extracted"
            )

        outcomes = await asyncio.gather(
            *(
                self._store_chunk(upload.file_name, piece, index)
                for index, piece in enumerate(pieces)
            )
        )
        result = FileIngestionResult(file_name=upload.file_name, chunks=list(outcomes))
        if result.ok:
            logger.info("Ingested %s into %d chunks", upload.file_name, len(outcomes))
        else:
            logger.error("Ingestion of %s failed: %s", upload.file_name, result.failure_reason)
        return result

    async def ingest_files(self, uploads: Sequence[UploadedFile]) -> IngestionReport:
        """Ingest files concurrently and report every outcome."""
        results = await asyncio.gather(*(self.ingest_file(upload) for upload in uploads))
        return IngestionReport(files=list(results))

    async def ingest_or_rollback(self, uploads: Sequence[UploadedFile]) -> IngestionReport:
        """Ingest a batch, all-or-nothing.

        If any file fails, every chunk the batch wrote is discarded
        (best-effort) and the first failed file is reported.

        Raises:
            IngestionError: Naming the first failed file in input order.
        """
        report = await self.ingest_files(uploads)
        failed = report.first_failure
        if failed is None:
            return report

        written = [chunk_id for result in report.files for chunk_id in result.chunk_ids]
        _, leftovers = await self.discard_chunks(written)
        if leftovers:
            logger.warning(
                "Rollback left %d chunks behind: %s", len(leftovers), sorted(leftovers)
            )
        raise IngestionError(failed.file_name, failed.failure_reason or "unknown error", report)

    async def discard_chunks(
        self, chunk_ids: Sequence[str]
    ) -> tuple[list[str], dict[str, str]]:
        """Delete chunks and their vectors, best-effort.

        The vector goes first: a chunk row without a vector is harmless,
        a vector without a row is not.

        Returns:
            The ids that were cleared and a map of id to failure reason.
        """
        outcomes = await asyncio.gather(*(self._discard_chunk(cid) for cid in chunk_ids))
        deleted = [cid for cid, error in zip(chunk_ids, outcomes) if error is None]
        failures = {cid: error for cid, error in zip(chunk_ids, outcomes) if error is not None}
        return deleted, failures

    async def _store_chunk(self, file_name: str, text: str, index: int) -> ChunkOutcome:
        outcome = ChunkOutcome(sequence_index=index)
        try:
            outcome.chunk_id = await self._repository.save(file_name, text, index)
            vector = await self._embedder.embed(text)
            await self._index.upsert(outcome.chunk_id, vector)
            outcome.indexed = True
        except LoanIntakeError as exc:
            logger.error(
                "Chunk %d of %s failed at %s: %s", index, file_name, exc.stage, exc.message
            )
            outcome.error = f"{exc.stage}: {exc.message}"
        return outcome

    async def _discard_chunk(self, chunk_id: str) -> str | None:
        try:
            await self._index.delete([chunk_id])
            await self._repository.delete_by_id(chunk_id)
        except LoanIntakeError as exc:
            logger.warning("Failed to delete chunk %s: %s", chunk_id, exc.message)
            return f"{exc.stage}: {exc.message}"
        return None
