"""Section-aware chunker: heading detection plus paragraph packing."""

from typing import Optional

import structlog

from .base import BaseChunker, Section
from .headings import HeadingClassifier, PatternHeadingClassifier

logger = structlog.get_logger(__name__)

PREAMBLE_SECTION = "Preamble"
PARAGRAPH_SEPARATOR = "\n\n"


def pack_paragraphs(paragraphs: list[str], chunk_size: int, overlap: int) -> list[str]:
    """
    Pack paragraphs into chunks of at most ``chunk_size`` characters.

    Paragraphs longer than ``chunk_size`` are hard-split on their own. After
    packing, every chunk but the first is prefixed with the trailing
    ``overlap`` characters of the previous (already prefixed) chunk.

    Args:
        paragraphs: Paragraph strings in document order
        chunk_size: Max characters per packed chunk
        overlap: Rolling overlap in characters

    Returns:
        List of chunk strings
    """
    chunks: list[str] = []
    current = ""

    def flush() -> None:
        nonlocal current
        packed = current.strip()
        if packed:
            chunks.append(packed)
        current = ""

    for raw in paragraphs:
        para = (raw or "").strip()
        if not para:
            continue

        if len(para) > chunk_size:
            if current.strip():
                flush()
            for i in range(0, len(para), chunk_size):
                chunks.append(para[i : i + chunk_size])
            continue

        if len(current) + len(para) + len(PARAGRAPH_SEPARATOR) <= chunk_size:
            current += (PARAGRAPH_SEPARATOR if current else "") + para
        else:
            flush()
            current = para
    flush()

    if overlap <= 0 or len(chunks) <= 1:
        return chunks

    rolled = [chunks[0]]
    for chunk in chunks[1:]:
        prev = rolled[-1]
        tail = prev[max(0, len(prev) - overlap) :]
        rolled.append((tail + "\n" + chunk).strip())
    return rolled


class SectionChunker(BaseChunker):
    """
    Split paper text by recognized headings, then pack paragraphs.

    A line only counts as a heading while the paragraph buffer is empty, so
    a short upper-case line in the middle of a sentence is kept as text.
    """

    chunker_name = "section"

    def __init__(
        self,
        chunk_size: int,
        overlap: int,
        classifier: Optional[HeadingClassifier] = None,
    ):
        super().__init__(chunk_size, overlap)
        self.classifier = classifier or PatternHeadingClassifier()

    def segment(self, text: str) -> list[Section]:
        titled_paragraphs = self._split_sections(text or "")
        sections = [
            Section(
                section_label=title,
                chunks=pack_paragraphs(paragraphs, self.chunk_size, self.overlap),
            )
            for title, paragraphs in titled_paragraphs
        ]
        logger.debug(
            "Section chunking complete",
            sections=len(sections),
            chunks=sum(len(s.chunks) for s in sections),
        )
        return sections

    def _split_sections(self, text: str) -> list[tuple[str, list[str]]]:
        """Group lines into (heading, paragraphs) pairs."""
        sections: list[tuple[str, list[str]]] = []
        title = PREAMBLE_SECTION
        paragraphs: list[str] = []
        paragraph = ""

        def flush_paragraph() -> None:
            nonlocal paragraph
            p = paragraph.strip()
            if p:
                paragraphs.append(p)
            paragraph = ""

        def flush_section() -> None:
            nonlocal paragraphs
            flush_paragraph()
            if paragraphs:
                sections.append((title, paragraphs))
            paragraphs = []

        for line in text.split("\n"):
            heading = self.classifier.classify(line)
            if heading is not None and not paragraph.strip():
                flush_section()
                title = heading.label
                continue

            if not line.strip():
                flush_paragraph()
                continue

            paragraph += (" " if paragraph else "") + line.strip()

        flush_section()
        return sections


def segment_by_sections(text: str, chunk_size: int, overlap: int) -> list[Section]:
    """Segment text with the default pattern heading classifier."""
    return SectionChunker(chunk_size, overlap).segment(text)
