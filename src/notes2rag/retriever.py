"""Retrieval: cosine ranking, MMR diversification and neighbour expansion."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Sequence

import numpy as np
import structlog

from .config import settings
from .indexer import NoteIndexer
from .schemas.chunk import Chunk
from .store import IndexStore
from .utils.embedding_client import embed_text

logger = structlog.get_logger(__name__)


@dataclass
class ScoredChunk:
    """A candidate chunk with its relevance to the query."""

    chunk: Chunk
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Returns 0.0 when either vector has zero norm. Vectors of different
    length are compared over their common prefix.
    """
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    va = np.asarray(a[:n], dtype=np.float64)
    vb = np.asarray(b[:n], dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def mmr_select(scored: list[ScoredChunk], k: int, lambda_: float = 0.8) -> list[ScoredChunk]:
    """
    Greedy maximal-marginal-relevance selection.

    Each round picks the candidate maximizing
    ``lambda_ * score - (1 - lambda_) * max_sim``, where ``max_sim`` is the
    highest similarity to an already selected chunk, floored at 0. Ties go to
    the earliest candidate in the remaining pool.

    Args:
        scored: Candidates, usually sorted by descending score
        k: Maximum number of chunks to select
        lambda_: Relevance weight in [0, 1]

    Returns:
        Selected candidates in selection order
    """
    remaining = list(scored)
    selected: list[ScoredChunk] = []

    while remaining and len(selected) < k:
        best_idx = 0
        best_val = float("-inf")

        for i, candidate in enumerate(remaining):
            max_sim = 0.0
            for chosen in selected:
                sim = cosine_similarity(candidate.chunk.embedding, chosen.chunk.embedding)
                if sim > max_sim:
                    max_sim = sim

            value = lambda_ * candidate.score - (1 - lambda_) * max_sim
            if value > best_val:
                best_val = value
                best_idx = i

        selected.append(remaining.pop(best_idx))

    return selected


def expand_neighbors(selected: Iterable[Chunk], candidates: Iterable[Chunk]) -> list[Chunk]:
    """
    Add each selected chunk's predecessor and successor by position.

    Neighbours are looked up among all candidates of the same note, not just
    the selected ones. The result is deduplicated by chunk id and keeps the
    order hit, predecessor, successor.
    """
    by_document: dict[str, list[Chunk]] = {}
    for chunk in candidates:
        by_document.setdefault(chunk.document_path, []).append(chunk)
    for group in by_document.values():
        group.sort(key=lambda c: c.position_index)

    expanded: list[Chunk] = []
    seen: set[str] = set()

    def push(chunk: Chunk) -> None:
        if chunk.id not in seen:
            seen.add(chunk.id)
            expanded.append(chunk)

    for hit in selected:
        group = by_document.get(hit.document_path, [])
        position = next((i for i, c in enumerate(group) if c.id == hit.id), -1)

        push(hit)
        if position > 0:
            push(group[position - 1])
        if 0 <= position < len(group) - 1:
            push(group[position + 1])

    return expanded


def unique_scope(paths: Iterable[str]) -> list[str]:
    """Deduplicate note paths, keeping first occurrence order."""
    return list(dict.fromkeys(paths))


class Retriever:
    """Answers a query with a readable, diversified set of chunks."""

    def __init__(
        self,
        store: IndexStore,
        indexer: NoteIndexer,
        embed: Callable[[str], Awaitable[list[float]]] = embed_text,
        mmr_lambda: Optional[float] = None,
    ):
        self.store = store
        self.indexer = indexer
        self.embed = embed
        self.mmr_lambda = mmr_lambda if mmr_lambda is not None else settings.mmr_lambda

    async def refresh_stale(self, scope: list[str]) -> list[str]:
        """
        Reindex scope notes that are missing from the index or changed since.

        Failures are logged; the affected note keeps whatever was indexed.

        Returns:
            Paths that were reindexed
        """
        refreshed: list[str] = []
        for path in scope:
            try:
                if await self.indexer.needs_reindex(path):
                    logger.info("Note is stale, reindexing", path=path)
                    await self.indexer.index_document(path)
                    refreshed.append(path)
            except Exception as e:
                logger.warning("Lazy reindex failed", path=path, error=str(e))
        return refreshed

    async def retrieve(self, query: str, scope: Iterable[str], top_k: Optional[int] = None) -> list[Chunk]:
        """
        Retrieve the chunks to show the model for a query.

        Args:
            query: User question
            scope: Note paths to search (deduplicated, order kept)
            top_k: Number of MMR picks before expansion (default: settings.top_k)

        Returns:
            Chunks ordered for prompt consumption: metadata chunks first, then
            the expanded hits sorted by (note path, position). Empty only when
            no scope note has any chunk.

        Raises:
            EmbeddingError: If the query cannot be embedded.
        """
        top_k = top_k if top_k is not None else settings.top_k
        scope = unique_scope(scope)

        await self.refresh_stale(scope)

        index = await self.store.ensure_loaded()
        candidates = index.chunks_in_scope(scope)
        if not candidates:
            logger.info("No indexed chunks in scope", scope=len(scope))
            return []

        query_vec = await self.embed(query)

        scored = [ScoredChunk(c, cosine_similarity(query_vec, c.embedding)) for c in candidates]
        scored.sort(key=lambda s: s.score, reverse=True)

        picked = mmr_select(scored, top_k, self.mmr_lambda)
        expanded = expand_neighbors([s.chunk for s in picked], candidates)
        expanded.sort(key=lambda c: (c.document_path, c.position_index))

        present = {c.id for c in expanded}
        for path in scope:
            meta = index.metadata_chunk(path)
            if meta is not None and meta.id not in present:
                expanded.insert(0, meta)
                present.add(meta.id)

        logger.debug(
            "Retrieved chunks",
            candidates=len(candidates),
            selected=len(picked),
            returned=len(expanded),
            labels=[c.label() for c in expanded],
        )
        return expanded
