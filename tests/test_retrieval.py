"""Tests for semantic retrieval and context ordering."""

import asyncio

import pytest

from loan_intake.exceptions import EmbeddingError, RetrievalError
from loan_intake.retrieval.retriever import RetrievalService
from loan_intake.storage.chunk_repository import SqliteChunkRepository
from tests.fakes import FakeEmbedder, FakeVectorIndex


async def _seed(
    repository: SqliteChunkRepository,
    index: FakeVectorIndex,
    file_name: str,
    texts: list[str],
) -> list[str]:
    ids = []
    for position, text in enumerate(texts):
        chunk_id = await repository.save(file_name, text, position)
        await index.upsert(chunk_id, [0.1] * 8)
        ids.append(chunk_id)
    return ids


class SlowEmbedder(FakeEmbedder):
    async def embed(self, text: str) -> list[float]:
        await asyncio.sleep(1)
        return await super().embed(text)


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_orders_by_sequence_index_not_score(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        ids = await _seed(repository, index, "payslip.pdf", ["March.", "April.", "May."])
        index.order = [ids[2], ids[0], ids[1]]

        context = await retriever.retrieve("monthly salary")

        assert [chunk.sequence_index for chunk in context.chunks] == [0, 1, 2]
        assert context.text == "March.\nApril.\nMay."

    @pytest.mark.asyncio
    async def test_order_is_stable_across_score_permutations(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        ids = await _seed(repository, index, "statement.pdf", ["a.", "b.", "c.", "d."])
        texts = []
        for order in ([ids[3], ids[1], ids[0], ids[2]], list(reversed(ids)), ids):
            index.order = order
            texts.append((await retriever.retrieve("salary credits")).text)
        assert texts == ["a.\nb.\nc.\nd."] * 3

    @pytest.mark.asyncio
    async def test_ties_broken_by_file_name(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        await _seed(repository, index, "b_statement.pdf", ["bank first."])
        await _seed(repository, index, "a_payslip.pdf", ["payslip first."])

        context = await retriever.retrieve("income")

        assert [chunk.file_name for chunk in context.chunks] == [
            "a_payslip.pdf",
            "b_statement.pdf",
        ]

    @pytest.mark.asyncio
    async def test_top_k_limits_candidates(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        await _seed(repository, index, "p.pdf", [f"line {i}." for i in range(10)])
        context = await retriever.retrieve("income", top_k=3)
        assert len(context.chunks) == 3

    @pytest.mark.asyncio
    async def test_empty_index_gives_empty_context(
        self, retriever: RetrievalService
    ) -> None:
        context = await retriever.retrieve("income")
        assert context.chunks == []
        assert context.text == ""

    @pytest.mark.asyncio
    async def test_restrict_to_filters_foreign_chunks(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        own = await _seed(repository, index, "mine.pdf", ["my salary."])
        await _seed(repository, index, "theirs.pdf", ["their salary."])

        context = await retriever.retrieve("salary", restrict_to=own)

        assert [chunk.id for chunk in context.chunks] == own

    @pytest.mark.asyncio
    async def test_own_chunk_found_behind_many_foreign(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        own = await _seed(repository, index, "mine.pdf", ["my salary 50000."])
        await _seed(
            repository, index, "theirs.pdf", [f"their salary {i}." for i in range(50)]
        )

        context = await retriever.retrieve("income", restrict_to=own)

        assert [chunk.id for chunk in context.chunks] == own
        assert index.queries[-1] == own

    @pytest.mark.asyncio
    async def test_empty_scope_skips_lookup(
        self,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        await _seed(repository, index, "theirs.pdf", ["their salary."])
        embedder = FakeEmbedder()
        retriever = RetrievalService(embedder, index, repository)

        context = await retriever.retrieve("income", restrict_to=[])

        assert context.chunks == []
        assert embedder.calls == []
        assert index.queries == []

    @pytest.mark.asyncio
    async def test_search_returns_joined_text(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        await _seed(repository, index, "p.pdf", ["Net pay 50000.", "Credited."])
        assert await retriever.search("net pay") == "Net pay 50000.\nCredited."


class TestRetrieveFailures:
    @pytest.mark.asyncio
    async def test_embedding_failure_is_retrieval_error(
        self, index: FakeVectorIndex, repository: SqliteChunkRepository
    ) -> None:
        retriever = RetrievalService(FakeEmbedder(fail_on={"salary"}), index, repository)
        with pytest.raises(RetrievalError) as exc_info:
            await retriever.retrieve("salary")
        assert isinstance(exc_info.value.__cause__, EmbeddingError)
        assert exc_info.value.details["query"] == "salary"

    @pytest.mark.asyncio
    async def test_index_failure_is_retrieval_error(
        self, embedder: FakeEmbedder, repository: SqliteChunkRepository
    ) -> None:
        retriever = RetrievalService(embedder, FakeVectorIndex({"query"}), repository)
        with pytest.raises(RetrievalError, match="index"):
            await retriever.retrieve("salary")

    @pytest.mark.asyncio
    async def test_missing_chunk_row_is_retrieval_error(
        self,
        retriever: RetrievalService,
        repository: SqliteChunkRepository,
        index: FakeVectorIndex,
    ) -> None:
        await _seed(repository, index, "p.pdf", ["kept."])
        await index.upsert("orphan", [0.2] * 8)

        with pytest.raises(RetrievalError) as exc_info:
            await retriever.retrieve("salary")
        assert exc_info.value.details["missing_ids"] == ["orphan"]

    @pytest.mark.asyncio
    async def test_timeout_is_retrieval_error(
        self, index: FakeVectorIndex, repository: SqliteChunkRepository
    ) -> None:
        retriever = RetrievalService(
            SlowEmbedder(), index, repository, timeout_seconds=0.05
        )
        with pytest.raises(RetrievalError, match="timed out"):
            await retriever.retrieve("salary")
