"""Underwriting service: the entry points for intake, analysis and cleanup."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path, PurePath

from openai import AsyncOpenAI

from loan_intake.analysis.answerer import QuestionAnswerer
from loan_intake.analysis.generator import AnalysisGenerator
from loan_intake.analysis.validator import validate_analysis
from loan_intake.config import AppConfig
from loan_intake.exceptions import (
    ApplicationStateError,
    GenerationError,
    LoanIntakeError,
    RetrievalError,
    StoreError,
    ValidationError,
)
from loan_intake.ingestion.chunker import DocumentChunker
from loan_intake.ingestion.extractor import TextExtractor
from loan_intake.ingestion.pipeline import DocumentIngestor
from loan_intake.interfaces import ChunkRepository, VectorIndex
from loan_intake.models.analysis import LoanAnalysis
from loan_intake.models.application import (
    ApplicantProfile,
    ApplicationDocuments,
    DocumentRef,
    LoanApplication,
)
from loan_intake.models.chunk import UploadedFile
from loan_intake.models.results import CleanupReport, QuestionAnswer
from loan_intake.providers.embedding import OpenAIEmbeddingClient
from loan_intake.providers.llm import OpenAILanguageModel
from loan_intake.retrieval.retriever import RetrievalService
from loan_intake.storage.application_store import SqliteApplicationStore
from loan_intake.storage.chunk_repository import SqliteChunkRepository
from loan_intake.storage.vector_index import ChromaVectorIndex

logger = logging.getLogger(__name__)


class UnderwritingService:
    """Coordinates the ingestion and analysis paths.

    Args:
        ingestor: Document ingestion pipeline.
        generator: Candidate analysis generator.
        retriever: Retrieval service, used for ad-hoc search.
        answerer: Question answerer for ad-hoc questions.
        store: Application/analysis store.
        repository: Chunk repository, used for bulk purge.
        index: Vector index, used for bulk purge.
        topic_queries: Query text per analysis topic.
        uploads_dir: Directory applicant photos are copied into.
        rerun_policy: "replace" keeps one analysis per application,
            "append" keeps every pass.
    """

    def __init__(
        self,
        ingestor: DocumentIngestor,
        generator: AnalysisGenerator,
        retriever: RetrievalService,
        answerer: QuestionAnswerer,
        store: SqliteApplicationStore,
        repository: ChunkRepository,
        index: VectorIndex,
        topic_queries: dict[str, str],
        uploads_dir: str | Path,
        rerun_policy: str = "replace",
    ) -> None:
        self._ingestor = ingestor
        self._generator = generator
        self._retriever = retriever
        self._answerer = answerer
        self._uploads_dir = Path(uploads_dir)
        self._store = store
        self._repository = repository
        self._index = index
        self._topic_queries = topic_queries
        self._rerun_policy = rerun_policy

    # ── Ingestion ────────────────────────────────────────────────────────

    async def ingest_files(self, uploads: Sequence[UploadedFile]) -> list[DocumentRef]:
        """Ingest standalone files.

        Returns:
            One reference per file with its chunk ids in sequence order.

        Raises:
            IngestionError: Naming the first file that failed.
        """
        report = await self._ingestor.ingest_or_rollback(uploads)
        return [
            DocumentRef(file_name=result.file_name, chunk_ids=result.chunk_ids)
            for result in report.files
        ]

    async def submit_application(
        self,
        profile: ApplicantProfile,
        payslips: Sequence[UploadedFile] = (),
        bank_statements: Sequence[UploadedFile] = (),
        pan_card: UploadedFile | None = None,
        aadhaar_card: UploadedFile | None = None,
        photo: UploadedFile | None = None,
    ) -> LoanApplication:
        """Ingest an applicant's documents and save a pending application.

        The photo, if any, is copied into the uploads directory and the
        profile's ``photo_url`` points at the stored copy.

        Raises:
            IngestionError: If any document fails; nothing is kept.
            StoreError: If the photo or the application cannot be saved;
                the ingested chunks and any stored photo are discarded.
        """
        uploads = [*payslips, *bank_statements]
        if pan_card is not None:
            uploads.append(pan_card)
        if aadhaar_card is not None:
            uploads.append(aadhaar_card)

        refs = await self.ingest_files(uploads)
        n_pay, n_bank = len(payslips), len(bank_statements)
        tail = iter(refs[n_pay + n_bank :])
        documents = ApplicationDocuments(
            payslips=refs[:n_pay],
            bank_statements=refs[n_pay : n_pay + n_bank],
            pan_card=next(tail) if pan_card is not None else None,
            aadhaar_card=next(tail) if aadhaar_card is not None else None,
        )

        application = LoanApplication(profile=profile, documents=documents)
        photo_path = None
        try:
            if photo is not None:
                photo_path = await self._store_photo(application.id, photo)
                application = application.model_copy(
                    update={
                        "profile": profile.model_copy(
                            update={"photo_url": f"/uploads/{photo_path.name}"}
                        )
                    }
                )
            await self._store.create_application(application)
        except LoanIntakeError:
            await self._ingestor.discard_chunks(documents.all_chunk_ids())
            if photo_path is not None:
                await asyncio.to_thread(photo_path.unlink, missing_ok=True)
            raise

        logger.info(
            "Submitted application %s with %d documents",
            application.id,
            len(refs),
        )
        return application

    async def _store_photo(self, application_id: str, photo: UploadedFile) -> Path:
        # Strip any directory part of the supplied name
        name = PurePath(photo.file_name).name
        path = self._uploads_dir / f"{application_id}_{name}"
        try:
            await asyncio.to_thread(self._uploads_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, photo.data)
        except OSError as exc:
            raise StoreError(
                f"Could not store applicant photo: {exc}",
                {"file_name": photo.file_name, "application_id": application_id},
            ) from exc
        logger.debug("Stored photo for %s at %s", application_id, path)
        return path

    def _photo_path(self, application: LoanApplication) -> Path | None:
        url = application.profile.photo_url
        if not url or not url.startswith("/uploads/"):
            return None
        return self._uploads_dir / PurePath(url).name

    # ── Analysis ─────────────────────────────────────────────────────────

    async def analyze(self, application_id: str) -> LoanAnalysis:
        """Run retrieval, generation and validation for an application.

        A validated verdict is saved as a completed analysis and the
        application moves to ``analyzed``. A failed pass is recorded without
        any model output and the error is re-raised; its ``stage`` names the
        failing step.

        Raises:
            NotFound: If the application does not exist.
            ApplicationStateError: If the application was rejected.
            RetrievalError, GenerationError, ValidationError: On failure.
        """
        application = await self._store.get_application(application_id)
        if application.status == "rejected":
            raise ApplicationStateError(
                "Cannot analyze a rejected application",
                {"application_id": application_id},
            )

        try:
            candidate = await self._generator.generate(application, self._topic_queries)
            result = validate_analysis(candidate, application.profile.credit_score)
        except (RetrievalError, GenerationError, ValidationError) as exc:
            logger.error(
                "Analysis of %s failed at %s: %s", application_id, exc.stage, exc
            )
            await self._record_failure(application_id, exc)
            raise

        analysis = LoanAnalysis(application_id=application_id, analysis=result)
        await self._store.save_analysis(analysis, replace=self._rerun_policy == "replace")
        if application.status == "pending":
            await self._store.update_status(application_id, "analyzed")

        logger.info(
            "Application %s analyzed: eligible=%s risk=%s",
            application_id,
            result.loan_eligibility.is_eligible,
            result.loan_eligibility.risk_level,
        )
        return analysis

    async def _record_failure(self, application_id: str, exc: LoanIntakeError) -> None:
        failure = LoanAnalysis(
            application_id=application_id,
            status="failed",
            failure_stage=exc.stage,
            failure_reason=str(exc),
        )
        try:
            await self._store.save_analysis(failure)
        except LoanIntakeError:
            logger.exception("Could not record failed analysis for %s", application_id)

    async def get_application(self, application_id: str) -> LoanApplication:
        return await self._store.get_application(application_id)

    async def get_analysis(self, application_id: str) -> LoanAnalysis:
        """Latest completed analysis of an application.

        Raises:
            NotFound: If there is none.
        """
        return await self._store.get_latest_analysis(application_id)

    async def reject_application(self, application_id: str) -> LoanApplication:
        """Move a pending application to ``rejected``.

        Raises:
            NotFound: If the application does not exist.
            ApplicationStateError: If it is not pending.
        """
        application = await self._store.get_application(application_id)
        if application.status != "pending":
            raise ApplicationStateError(
                f"Cannot reject an application in status {application.status!r}",
                {"application_id": application_id},
            )
        await self._store.update_status(application_id, "rejected")
        return application.model_copy(update={"status": "rejected"})

    async def search(self, query: str) -> str:
        """Joined retrieved context for an ad-hoc question."""
        return await self._retriever.search(query)

    async def ask(self, question: str) -> QuestionAnswer:
        """Short model answer to an ad-hoc question, grounded in retrieved context.

        Raises:
            RetrievalError: If retrieval fails.
            GenerationError: If the model call fails.
        """
        return await self._answerer.ask(question)

    # ── Cleanup ──────────────────────────────────────────────────────────

    async def delete_application(self, application_id: str) -> CleanupReport:
        """Delete an application, its analyses, chunks, vectors and photo.

        Chunk and photo deletion is best-effort. Chunk failures are reported
        in the result while a photo failure is only logged. The analysis and
        application records are removed regardless.

        Raises:
            NotFound: If the application does not exist.
        """
        application = await self._store.get_application(application_id)

        deleted, failures = await self._ingestor.discard_chunks(
            application.documents.all_chunk_ids()
        )
        analyses_deleted = await self._store.delete_analyses(application_id)
        await self._store.delete_application(application_id)

        photo_path = self._photo_path(application)
        if photo_path is not None:
            try:
                await asyncio.to_thread(photo_path.unlink, missing_ok=True)
            except OSError:
                logger.warning("Could not remove photo %s", photo_path, exc_info=True)

        report = CleanupReport(
            application_id=application_id,
            deleted_chunk_ids=deleted,
            failures=failures,
            analyses_deleted=analyses_deleted,
        )
        if failures:
            logger.warning(
                "Deleted application %s with %d chunk failures: %s",
                application_id,
                len(failures),
                failures,
            )
        else:
            logger.info(
                "Deleted application %s and %d chunks", application_id, len(deleted)
            )
        return report

    async def purge_all(self) -> int:
        """Delete every chunk, vector and analysis. Returns chunks removed."""
        await self._index.delete_all()
        removed = await self._repository.delete_all()
        await self._store.delete_all_analyses()
        logger.warning("Purged %d chunks, all analyses and all vectors", removed)
        return removed


def build_service(config: AppConfig) -> UnderwritingService:
    """Wire the production stack from configuration."""
    client = AsyncOpenAI(api_key=config.openai_api_key)
    embedder = OpenAIEmbeddingClient(client, config.embedding)
    index = ChromaVectorIndex.persistent(
        config.storage.chroma_dir, config.storage.collection_name
    )
    repository = SqliteChunkRepository(config.storage.sqlite_path)
    store = SqliteApplicationStore(config.storage.sqlite_path)

    retriever = RetrievalService(
        embedder,
        index,
        repository,
        top_k=config.retrieval.top_k,
        timeout_seconds=config.retrieval.timeout_seconds,
    )
    ingestor = DocumentIngestor(
        TextExtractor(config.extraction),
        DocumentChunker(config.chunking),
        repository,
        embedder,
        index,
    )
    model = OpenAILanguageModel(client, config.generation)
    generator = AnalysisGenerator(retriever, model)
    answerer = QuestionAnswerer(
        retriever, model, max_words=config.generation.answer_max_words
    )

    return UnderwritingService(
        ingestor=ingestor,
        generator=generator,
        retriever=retriever,
        answerer=answerer,
        store=store,
        repository=repository,
        index=index,
        topic_queries=config.retrieval.topic_queries(),
        uploads_dir=config.storage.uploads_dir,
        rerun_policy=config.analysis.rerun_policy,
    )
