"""Flat fixed-window chunker, used when no sections can be recognized."""

from .base import BaseChunker, Section

FALLBACK_SECTION = "Body"


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[str]:
    """
    Slide a ``chunk_size`` window over the text, stepping ``chunk_size - overlap``.

    Args:
        text: Input text (stripped before windowing)
        chunk_size: Window length in characters
        overlap: Characters shared by consecutive windows

    Returns:
        List of windows (empty for blank input)
    """
    chunks: list[str] = []
    t = (text or "").strip()
    if not t:
        return chunks

    i = 0
    while i < len(t):
        end = min(i + chunk_size, len(t))
        chunks.append(t[i:end])
        if end == len(t):
            break
        i = max(0, end - overlap)
    return chunks


class WindowChunker(BaseChunker):
    """Section-unaware sliding-window chunking."""

    chunker_name = "window"

    def segment(self, text: str) -> list[Section]:
        chunks = [c.strip() for c in chunk_text(text, self.chunk_size, self.overlap)]
        chunks = [c for c in chunks if c]
        if not chunks:
            return []
        return [Section(section_label=FALLBACK_SECTION, chunks=chunks)]
