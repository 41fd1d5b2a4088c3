"""Shared fixtures: temporary vault, index store and deterministic fakes."""

import os
from pathlib import Path
from typing import Optional

import pytest

from notes2rag.indexer import NoteIndexer
from notes2rag.retriever import Retriever
from notes2rag.router import Router
from notes2rag.store import IndexStore
from notes2rag.utils.embedding_client import EmbeddingError
from notes2rag.vault import NoteStore


class FakeEmbedder:
    """
    Embeds text as keyword counts along fixed axes plus a constant bias axis.

    Texts containing ``fail_on`` raise EmbeddingError.
    """

    AXES = ("attention", "graph", "protein", "author", "summary", "neural")

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError(f"refused to embed text containing {self.fail_on}")
        lower = text.lower()
        return [float(lower.count(axis)) for axis in self.AXES] + [1.0]


class SpyIndexer(NoteIndexer):
    """NoteIndexer that records which notes it (re)indexed."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.indexed_paths: list[str] = []

    async def index_document(self, path: str):
        self.indexed_paths.append(path)
        return await super().index_document(path)


def write_note(notes: NoteStore, path: str, text: str, mtime: float = 1_000_000.0) -> None:
    """Write a note synchronously and pin its modification time."""
    target = notes.resolve(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    os.utime(target, (mtime, mtime))


@pytest.fixture
def notes(tmp_path: Path) -> NoteStore:
    root = tmp_path / "vault"
    root.mkdir()
    return NoteStore(root)


@pytest.fixture
def store(tmp_path: Path) -> IndexStore:
    return IndexStore(tmp_path / "index" / "rag_index.json", embedding_model_id="fake-model")


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def indexer(store: IndexStore, notes: NoteStore, embedder: FakeEmbedder) -> SpyIndexer:
    return SpyIndexer(store, notes, embed=embedder, router=Router(chunk_size=400, overlap=40), lead_chars=300)


@pytest.fixture
def retriever(store: IndexStore, indexer: SpyIndexer, embedder: FakeEmbedder) -> Retriever:
    return Retriever(store, indexer, embed=embedder, mmr_lambda=0.8)
