"""Chunk schema - the atomic retrievable unit."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Reserved positions for non-body chunks; body chunks are numbered from 0
METADATA_POSITION = -2
LEAD_POSITION = -1


class ChunkKind(str, Enum):
    """Role of a chunk for ranking and prompt priority."""

    METADATA = "meta"
    LEAD = "lead"
    SECTION = "section"
    BODY = "body"


class Chunk(BaseModel):
    """A bounded span of a note's text stored with its embedding."""

    id: str = Field(..., description="Unique id: path, position marker and hash prefix")
    document_path: str = Field(..., description="Vault-relative path of the owning note")
    document_name: str = Field(..., description="Display name of the owning note")
    position_index: int = Field(..., description="-2 metadata, -1 lead, 0..n body order")
    chunk_kind: ChunkKind = Field(default=ChunkKind.BODY)
    section_label: Optional[str] = Field(default=None, description="Heading the chunk sits under")
    source_modified_at: float = Field(default=0.0, description="Note mtime this chunk was derived from")
    text: str = Field(..., description="Chunk payload")
    embedding: list[float] = Field(default_factory=list)
    content_hash: str = Field(..., description="SHA-256 of the (kind-prefixed) text")
    indexed_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_metadata(self) -> bool:
        return self.chunk_kind == ChunkKind.METADATA

    def label(self) -> str:
        """Short human-readable reference, e.g. ``PaperX#3``."""
        return f"{self.document_name}#{self.position_index}"
