"""Persisted index schema holding every chunk of every note."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .chunk import Chunk, ChunkKind

SCHEMA_VERSION = 1


class RagIndex(BaseModel):
    """Top-level persisted structure: ``{schema_version, embedding_model_id, chunks}``."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    embedding_model_id: str = Field(default="")
    chunks: list[Chunk] = Field(default_factory=list)

    def chunks_for(self, document_path: str) -> list[Chunk]:
        """Get all chunks of one note, in index order."""
        return [c for c in self.chunks if c.document_path == document_path]

    def chunks_in_scope(self, document_paths: Iterable[str]) -> list[Chunk]:
        """Get all chunks whose note is in the given scope, in index order."""
        scope = set(document_paths)
        return [c for c in self.chunks if c.document_path in scope]

    def newest_source_mtime(self, document_path: str) -> float:
        """Newest ``source_modified_at`` among a note's chunks (0 if none)."""
        return max(
            (c.source_modified_at for c in self.chunks if c.document_path == document_path),
            default=0.0,
        )

    def metadata_chunk(self, document_path: str) -> Optional[Chunk]:
        """Get the metadata chunk of a note, if indexed."""
        for chunk in self.chunks:
            if chunk.document_path == document_path and chunk.chunk_kind == ChunkKind.METADATA:
                return chunk
        return None

    def document_paths(self) -> list[str]:
        """Distinct note paths present in the index, in first-seen order."""
        seen: dict[str, None] = {}
        for chunk in self.chunks:
            seen.setdefault(chunk.document_path, None)
        return list(seen)

    def remove_document(self, document_path: str) -> int:
        """
        Remove every chunk of a note.

        Returns:
            Number of chunks removed.
        """
        before = len(self.chunks)
        self.chunks = [c for c in self.chunks if c.document_path != document_path]
        return before - len(self.chunks)

    def replace_document(self, document_path: str, chunks: list[Chunk]) -> None:
        """
        Replace a note's chunk subset wholesale.

        Raises:
            ValueError: If a chunk belongs to another note or the new set
                carries more than one metadata chunk.
        """
        if any(c.document_path != document_path for c in chunks):
            raise ValueError(f"Chunk set contains chunks of other notes than {document_path}")
        if sum(1 for c in chunks if c.chunk_kind == ChunkKind.METADATA) > 1:
            raise ValueError(f"More than one metadata chunk for {document_path}")

        self.remove_document(document_path)
        self.chunks.extend(chunks)
