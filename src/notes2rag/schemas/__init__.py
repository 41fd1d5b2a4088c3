"""Pydantic schemas for the retrieval layer."""

from .chat import ChatMessage, ChatSession
from .chunk import LEAD_POSITION, METADATA_POSITION, Chunk, ChunkKind
from .index import SCHEMA_VERSION, RagIndex
from .metadata import PaperMetadata, PaperPack

__all__ = [
    "ChatMessage",
    "ChatSession",
    "Chunk",
    "ChunkKind",
    "LEAD_POSITION",
    "METADATA_POSITION",
    "PaperMetadata",
    "PaperPack",
    "RagIndex",
    "SCHEMA_VERSION",
]
