"""Tests for cosine scoring, MMR selection, neighbour expansion and retrieval."""

import asyncio

import numpy as np
import pytest
from conftest import FakeEmbedder, write_note

from notes2rag.retriever import (
    Retriever,
    ScoredChunk,
    cosine_similarity,
    expand_neighbors,
    mmr_select,
    unique_scope,
)
from notes2rag.schemas import Chunk, ChunkKind
from notes2rag.utils.embedding_client import EmbeddingError


def _make_chunk(
    path: str,
    position: int,
    embedding: list[float] | None = None,
    kind: ChunkKind = ChunkKind.SECTION,
) -> Chunk:
    return Chunk(
        id=f"{path}::{position}",
        document_path=path,
        document_name=path.rsplit(".", 1)[0],
        position_index=position,
        chunk_kind=kind,
        text=f"{path} #{position}",
        embedding=embedding or [1.0, 0.0],
        content_hash=f"h{position}",
    )


class TestCosineSimilarity:
    """Test cosine similarity bounds and degenerate inputs."""

    def test_bounds_on_random_vectors(self):
        rng = np.random.default_rng(7)
        for _ in range(200):
            a = rng.normal(size=16).tolist()
            b = rng.normal(size=16).tolist()
            assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_identical_and_opposite(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0
        assert cosine_similarity([], []) == 0.0

    def test_unequal_length_uses_common_prefix(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 5.0]) == pytest.approx(1.0)


class TestMmrSelect:
    """Test maximal-marginal-relevance selection."""

    def test_diverse_chunk_before_second_near_duplicate(self):
        query = [1.0, 1.0, 0.0]
        dup_a = _make_chunk("a.md", 0, [1.0, 0.06, 0.0])
        dup_b = _make_chunk("a.md", 1, [1.0, 0.05, 0.0])
        diverse = _make_chunk("a.md", 2, [0.0, 1.0, 0.0])
        scored = [ScoredChunk(c, cosine_similarity(query, c.embedding)) for c in (dup_a, dup_b, diverse)]
        scored.sort(key=lambda s: s.score, reverse=True)

        picked = mmr_select(scored, 2, lambda_=0.8)

        assert [s.chunk.id for s in picked] == [dup_a.id, diverse.id]

    def test_lambda_one_is_plain_ranking(self):
        scored = [ScoredChunk(_make_chunk("a.md", i), score) for i, score in enumerate([0.9, 0.8, 0.7])]
        picked = mmr_select(scored, 3, lambda_=1.0)
        assert [s.score for s in picked] == [0.9, 0.8, 0.7]

    def test_ties_go_to_earliest(self):
        scored = [ScoredChunk(_make_chunk("a.md", i), 0.5) for i in range(3)]
        picked = mmr_select(scored, 1)
        assert picked[0].chunk.position_index == 0

    def test_k_larger_than_pool(self):
        scored = [ScoredChunk(_make_chunk("a.md", 0), 0.5)]
        assert len(mmr_select(scored, 5)) == 1
        assert mmr_select([], 3) == []


class TestExpandNeighbors:
    """Test predecessor/successor expansion."""

    def setup_method(self):
        self.candidates = [_make_chunk("a.md", p) for p in (3, -2, 0, 1, -1, 2)]
        self.by_position = {c.position_index: c for c in self.candidates}

    def test_hit_then_prev_then_next(self):
        expanded = expand_neighbors([self.by_position[1]], self.candidates)
        assert [c.position_index for c in expanded] == [1, 0, 2]

    def test_edges(self):
        expanded = expand_neighbors([self.by_position[3], self.by_position[-2]], self.candidates)
        assert [c.position_index for c in expanded] == [3, 2, -2, -1]

    def test_dedup_by_id(self):
        expanded = expand_neighbors([self.by_position[0], self.by_position[1]], self.candidates)
        ids = [c.id for c in expanded]
        assert len(ids) == len(set(ids))
        assert sorted(c.position_index for c in expanded) == [-1, 0, 1, 2]

    def test_neighbours_stay_within_note(self):
        other = _make_chunk("b.md", 1)
        expanded = expand_neighbors([other], self.candidates + [other])
        assert expanded == [other]


def test_unique_scope_keeps_order():
    assert unique_scope(["b.md", "a.md", "b.md"]) == ["b.md", "a.md"]


def _body(word: str, paragraphs: int) -> str:
    return "\n\n".join(f"Paragraph {i} talks about {word} {word} in some detail." for i in range(paragraphs))


def _note(title: str, body: str) -> str:
    return f"---\ntitle: {title}\nauthors: Ada Lovelace\n---\n\n## Full Text Extracted from PDF\n{body}\n"


class TestRetrieve:
    """Test the full retrieval flow against a temporary vault."""

    def test_metadata_first_for_author_question(self, notes, retriever):
        write_note(notes, "a.md", _note("Paper A", _body("author", 40)))

        chunks = asyncio.run(retriever.retrieve("Who are the authors?", ["a.md"], top_k=1))

        assert chunks[0].chunk_kind == ChunkKind.METADATA
        assert len({c.id for c in chunks}) == len(chunks)

    def test_metadata_guaranteed_when_not_ranked(self, notes, retriever):
        write_note(notes, "a.md", _note("Paper A", _body("graph", 40)))

        chunks = asyncio.run(retriever.retrieve("graph graph graph", ["a.md"], top_k=1))

        assert chunks[0].chunk_kind == ChunkKind.METADATA
        assert sum(1 for c in chunks if c.is_metadata) == 1

    def test_results_sorted_after_metadata(self, notes, retriever):
        write_note(notes, "a.md", _note("Paper A", _body("attention", 30)))
        write_note(notes, "b.md", _note("Paper B", _body("protein", 30)))

        chunks = asyncio.run(retriever.retrieve("attention protein", ["a.md", "b.md"], top_k=4))

        rest = [c for c in chunks if not c.is_metadata]
        assert rest == sorted(rest, key=lambda c: (c.document_path, c.position_index))
        assert {c.document_path for c in chunks if c.is_metadata} == {"a.md", "b.md"}

    def test_only_stale_note_reindexed(self, notes, retriever, indexer):
        write_note(notes, "a.md", _note("Paper A", _body("attention", 5)), mtime=1000.0)
        write_note(notes, "b.md", _note("Paper B", _body("graph", 5)), mtime=1000.0)

        async def _run():
            await indexer.index_documents(["a.md", "b.md"])
            indexer.indexed_paths.clear()
            write_note(notes, "b.md", _note("Paper B", _body("graph", 6)), mtime=2000.0)
            await retriever.retrieve("graph", ["a.md", "b.md"])

        asyncio.run(_run())
        assert indexer.indexed_paths == ["b.md"]

    def test_unindexed_scope_indexed_lazily(self, notes, retriever, indexer):
        write_note(notes, "a.md", _note("Paper A", _body("attention", 3)))
        chunks = asyncio.run(retriever.retrieve("attention", ["a.md", "a.md"]))

        assert indexer.indexed_paths == ["a.md"]
        assert chunks

    def test_empty_scope(self, retriever):
        assert asyncio.run(retriever.retrieve("anything", [])) == []

    def test_lazy_reindex_failure_does_not_stop_retrieval(self, notes, store, indexer, embedder):
        write_note(notes, "a.md", _note("Paper A", _body("attention", 3)))
        retriever = Retriever(store, indexer, embed=embedder)

        chunks = asyncio.run(retriever.retrieve("attention", ["a.md", "missing.md"]))

        assert chunks
        assert all(c.document_path == "a.md" for c in chunks)

    def test_query_embedding_failure_propagates(self, notes, store, indexer):
        write_note(notes, "a.md", _note("Paper A", _body("attention", 3)))
        asyncio.run(indexer.index_document("a.md"))
        retriever = Retriever(store, indexer, embed=FakeEmbedder(fail_on="QUERY"))

        with pytest.raises(EmbeddingError):
            asyncio.run(retriever.retrieve("QUERY attention", ["a.md"]))
