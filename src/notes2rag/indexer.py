"""Incremental indexer: turns notes into embedded chunks in the index store."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional

import structlog

from .chunkers.window_chunker import FALLBACK_SECTION
from .config import settings
from .router import Router
from .schemas.chunk import LEAD_POSITION, METADATA_POSITION, Chunk, ChunkKind
from .schemas.metadata import PaperMetadata
from .store import IndexStore
from .utils.embedding_client import embed_text
from .utils.fingerprint import chunk_id, content_hash
from .utils.metadata import build_metadata_text, extract_note_metadata
from .utils.text_cleaning import extract_full_text_section, pre_clean_text
from .vault import NoteStore

logger = structlog.get_logger(__name__)

Embedder = Callable[[str], Awaitable[list[float]]]

METADATA_SECTION = "Metadata"
LEAD_SECTION = "Lead"


@dataclass
class _PendingChunk:
    kind: ChunkKind
    position: int
    section_label: Optional[str]
    text: str


@dataclass
class IndexReport:
    """Outcome of a batch indexing run."""

    indexed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.indexed) + len(self.skipped) + len(self.failed)


class NoteIndexer:
    """
    Builds and refreshes the chunks of single notes.

    Every (re)index replaces the note's chunk subset wholesale and persists the
    index once, after all of the note's chunks are embedded.
    """

    def __init__(
        self,
        store: IndexStore,
        notes: NoteStore,
        embed: Embedder = embed_text,
        clean: Callable[[str], str] = pre_clean_text,
        extract_metadata: Callable[[str], PaperMetadata] = extract_note_metadata,
        router: Optional[Router] = None,
        lead_chars: Optional[int] = None,
    ):
        self.store = store
        self.notes = notes
        self.embed = embed
        self.clean = clean
        self.extract_metadata = extract_metadata
        self.router = router or Router()
        self.lead_chars = lead_chars if lead_chars is not None else settings.lead_chars

    async def needs_reindex(self, path: str) -> bool:
        """True when the note has no chunks or changed after its chunks were built."""
        index = await self.store.ensure_loaded()
        if not index.chunks_for(path):
            return True
        modified_at = await self.notes.get_modified_time(path)
        return modified_at > index.newest_source_mtime(path)

    def build_pending(self, document_name: str, note_text: str) -> list[_PendingChunk]:
        """
        Lay out a note's chunks in embedding order: metadata, lead, body.

        Args:
            document_name: Note display name (title fallback)
            note_text: Full markdown text of the note
        """
        extracted = extract_full_text_section(note_text) or note_text
        cleaned = self.clean(extracted)

        pending: list[_PendingChunk] = []

        metadata_text = build_metadata_text(document_name, self.extract_metadata(note_text)).strip()
        if metadata_text:
            pending.append(_PendingChunk(ChunkKind.METADATA, METADATA_POSITION, METADATA_SECTION, metadata_text))

        lead_text = cleaned[: self.lead_chars].strip()
        if lead_text:
            pending.append(_PendingChunk(ChunkKind.LEAD, LEAD_POSITION, LEAD_SECTION, lead_text))

        for position, (label, text) in enumerate(self.router.segment(cleaned)):
            kind = ChunkKind.BODY if label == FALLBACK_SECTION else ChunkKind.SECTION
            pending.append(_PendingChunk(kind, position, label, text))

        return pending

    async def index_document(self, path: str) -> list[Chunk]:
        """
        (Re)index one note.

        Args:
            path: Vault-relative note path

        Returns:
            The note's new chunk set

        Raises:
            EmbeddingError: If an embedding call fails; the previously indexed
                chunks of the note are left untouched.
        """
        index = await self.store.ensure_loaded()
        note_text = await self.notes.read(path)
        modified_at = await self.notes.get_modified_time(path)
        document_name = self.notes.document_name(path)

        pending = self.build_pending(document_name, note_text)

        chunks: list[Chunk] = []
        for item in pending:
            if not item.text:
                continue
            digest = content_hash(item.text, item.kind)
            embedding = await self.embed(item.text)
            chunks.append(
                Chunk(
                    id=chunk_id(path, item.kind, item.position, digest),
                    document_path=path,
                    document_name=document_name,
                    position_index=item.position,
                    chunk_kind=item.kind,
                    section_label=item.section_label,
                    source_modified_at=modified_at,
                    text=item.text,
                    embedding=embedding,
                    content_hash=digest,
                    indexed_at=datetime.now(),
                )
            )

        index.replace_document(path, chunks)
        if self.store.embedding_model_id:
            index.embedding_model_id = self.store.embedding_model_id
        await self.store.save()

        logger.info(
            "Indexed note",
            path=path,
            chunks=len(chunks),
            body_chunks=sum(1 for c in chunks if c.position_index >= 0),
        )
        return chunks

    async def index_documents(self, paths: Iterable[str], force: bool = False) -> IndexReport:
        """
        Index a batch of notes; a failing note never aborts the batch.

        Args:
            paths: Vault-relative note paths
            force: Reindex even notes whose chunks are current
        """
        report = IndexReport()

        for path in paths:
            try:
                if not force and not await self.needs_reindex(path):
                    report.skipped.append(path)
                    continue
                await self.index_document(path)
                report.indexed.append(path)
            except Exception as e:
                logger.error("Failed to index note", path=path, error=str(e))
                report.failed[path] = str(e)

        logger.info(
            "Batch indexing complete",
            indexed=len(report.indexed),
            skipped=len(report.skipped),
            failed=len(report.failed),
        )
        return report
