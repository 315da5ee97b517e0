"""Semantic retrieval of stored chunks."""

import logging
from collections.abc import Collection

from loan_intake.exceptions import LoanIntakeError, RetrievalError
from loan_intake.interfaces import ChunkRepository, EmbeddingProvider, VectorIndex
from loan_intake.models.results import RetrievedContext
from loan_intake.timeouts import call_with_timeout

logger = logging.getLogger(__name__)


class RetrievalService:
    """Finds the chunks most relevant to a query.

    Similarity only selects the candidate set. The returned chunks are
    ordered by sequence index so the joined text reads in document order.

    Args:
        embedder: Embedding provider for the query text.
        index: Vector index holding one entry per chunk id.
        repository: Chunk repository resolving ids to text.
        top_k: Default number of nearest neighbours to fetch.
        timeout_seconds: Bound on one whole retrieval.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        repository: ChunkRepository,
        top_k: int = 50,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._repository = repository
        self._top_k = top_k
        self._timeout = timeout_seconds

    async def retrieve(
        self,
        query: str,
        top_k: int | None = None,
        restrict_to: Collection[str] | None = None,
    ) -> RetrievedContext:
        """Retrieve relevant chunks for a query.

        Args:
            query: Natural-language question or topic.
            top_k: Override of the default candidate count.
            restrict_to: If given, only chunks with these ids are candidates.

        Returns:
            The selected chunks, ordered by sequence index.

        Raises:
            RetrievalError: If embedding, the index query, or the chunk
                lookup fails, or an index hit has no stored chunk.
        """
        return await call_with_timeout(
            self._retrieve(query, top_k or self._top_k, restrict_to),
            self._timeout,
            lambda: RetrievalError(f"Retrieval timed out after {self._timeout}s", query),
        )

    async def _retrieve(
        self,
        query: str,
        top_k: int,
        restrict_to: Collection[str] | None,
    ) -> RetrievedContext:
        scope = list(restrict_to) if restrict_to is not None else None
        if scope is not None and not scope:
            return RetrievedContext(query=query)

        try:
            vector = await self._embedder.embed(query)
            matches = await self._index.query(vector, top_k, ids=scope)
        except LoanIntakeError as exc:
            raise RetrievalError(
                f"Retrieval failed at {exc.stage}: {exc.message}", query
            ) from exc

        ids = [match.id for match in matches]
        try:
            chunks = await self._repository.find_by_ids(ids)
        except LoanIntakeError as exc:
            raise RetrievalError(
                f"Retrieval failed at {exc.stage}: {exc.message}", query
            ) from exc

        missing = set(ids) - {chunk.id for chunk in chunks}
        if missing:
            raise RetrievalError(
                "Index entries without stored chunk text",
                query,
                {"missing_ids": sorted(missing)},
            )

        chunks.sort(key=lambda chunk: (chunk.sequence_index, chunk.file_name))
        logger.info(
            "Retrieved %d chunks for query %r (%d index matches)",
            len(chunks),
            query[:60],
            len(matches),
        )
        return RetrievedContext(query=query, chunks=chunks)

    async def search(self, query: str, top_k: int | None = None) -> str:
        """Retrieve and join chunk text for an ad-hoc query."""
        context = await self.retrieve(query, top_k)
        return context.text
