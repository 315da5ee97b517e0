"""Tests for the Chroma vector index."""

from pathlib import Path

import pytest

from loan_intake.exceptions import VectorIndexError
from loan_intake.storage.vector_index import ChromaVectorIndex


@pytest.fixture
def chroma_index(tmp_path: Path) -> ChromaVectorIndex:
    return ChromaVectorIndex.persistent(str(tmp_path / "chroma"), "test_chunks")


class TestChromaVectorIndex:
    @pytest.mark.asyncio
    async def test_query_empty_collection(self, chroma_index: ChromaVectorIndex) -> None:
        assert await chroma_index.query([1.0, 0.0, 0.0], top_k=5) == []

    @pytest.mark.asyncio
    async def test_nearest_first_with_similarity_scores(
        self, chroma_index: ChromaVectorIndex
    ) -> None:
        await chroma_index.upsert("income", [1.0, 0.0, 0.0])
        await chroma_index.upsert("identity", [0.0, 1.0, 0.0])

        matches = await chroma_index.query([0.9, 0.1, 0.0], top_k=2)

        assert [match.id for match in matches] == ["income", "identity"]
        assert matches[0].score > matches[1].score
        assert matches[0].score == pytest.approx(0.994, abs=1e-2)

    @pytest.mark.asyncio
    async def test_top_k_clamped_to_collection_size(
        self, chroma_index: ChromaVectorIndex
    ) -> None:
        await chroma_index.upsert("only", [1.0, 0.0, 0.0])
        matches = await chroma_index.query([1.0, 0.0, 0.0], top_k=50)
        assert [match.id for match in matches] == ["only"]

    @pytest.mark.asyncio
    async def test_scoped_query_ignores_nearer_entries(
        self, chroma_index: ChromaVectorIndex
    ) -> None:
        for position in range(5):
            await chroma_index.upsert(f"foreign-{position}", [1.0, 0.0, 0.0])
        await chroma_index.upsert("own", [0.0, 1.0, 0.0])

        matches = await chroma_index.query([1.0, 0.0, 0.0], top_k=2, ids=["own"])

        assert [match.id for match in matches] == ["own"]

    @pytest.mark.asyncio
    async def test_scope_with_unknown_ids(self, chroma_index: ChromaVectorIndex) -> None:
        await chroma_index.upsert("c1", [1.0, 0.0, 0.0])
        assert await chroma_index.query([1.0, 0.0, 0.0], top_k=5, ids=["gone"]) == []
        assert await chroma_index.query([1.0, 0.0, 0.0], top_k=5, ids=[]) == []

    @pytest.mark.asyncio
    async def test_upsert_overwrites(self, chroma_index: ChromaVectorIndex) -> None:
        await chroma_index.upsert("c1", [1.0, 0.0, 0.0])
        await chroma_index.upsert("c1", [0.0, 1.0, 0.0])
        assert await chroma_index.count() == 1

    @pytest.mark.asyncio
    async def test_delete(self, chroma_index: ChromaVectorIndex) -> None:
        await chroma_index.upsert("c1", [1.0, 0.0, 0.0])
        await chroma_index.upsert("c2", [0.0, 1.0, 0.0])
        await chroma_index.delete(["c1"])
        await chroma_index.delete([])

        matches = await chroma_index.query([1.0, 0.0, 0.0], top_k=5)
        assert [match.id for match in matches] == ["c2"]

    @pytest.mark.asyncio
    async def test_delete_all(self, chroma_index: ChromaVectorIndex) -> None:
        await chroma_index.upsert("c1", [1.0, 0.0, 0.0])
        await chroma_index.delete_all()
        assert await chroma_index.count() == 0
        await chroma_index.upsert("c2", [1.0, 0.0, 0.0])
        assert await chroma_index.count() == 1

    @pytest.mark.asyncio
    async def test_dimension_mismatch_raises_index_error(
        self, chroma_index: ChromaVectorIndex
    ) -> None:
        await chroma_index.upsert("c1", [1.0, 0.0, 0.0])
        with pytest.raises(VectorIndexError) as exc_info:
            await chroma_index.upsert("c2", [1.0, 0.0])
        assert exc_info.value.details["operation"] == "upsert"
