"""Content hashing and chunk id generation."""

import hashlib

from ..schemas.chunk import ChunkKind

HASH_PREFIX_LENGTH = 12

_KIND_MARKERS = {
    ChunkKind.METADATA: "META",
    ChunkKind.LEAD: "LEAD",
}


def content_hash(text: str, kind: ChunkKind = ChunkKind.BODY) -> str:
    """
    SHA-256 hex digest of a chunk's text.

    Metadata and lead chunks hash ``"META::"`` / ``"LEAD::"`` + text so they
    never collide with a body chunk of identical text.
    """
    marker = _KIND_MARKERS.get(kind)
    payload = f"{marker}::{text}" if marker else text
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def chunk_id(document_path: str, kind: ChunkKind, position: int, digest: str) -> str:
    """
    Build a chunk id stable for unchanged content.

    Examples:
        ``papers/x.md::META::1a2b3c4d5e6f``, ``papers/x.md::3::1a2b3c4d5e6f``
    """
    marker = _KIND_MARKERS.get(kind, str(position))
    return f"{document_path}::{marker}::{digest[:HASH_PREFIX_LENGTH]}"
