"""Router for choosing how a note's body text is segmented."""

from typing import Optional

import structlog

from .chunkers import BaseChunker, SectionChunker, WindowChunker
from .chunkers.headings import HeadingClassifier
from .config import settings

logger = structlog.get_logger(__name__)


class Router:
    """
    Routes note text to a chunker:
    - Section-aware chunker first (headings + paragraph packing)
    - Flat window chunker when the section pass yields no chunks
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None,
        classifier: Optional[HeadingClassifier] = None,
    ):
        chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        overlap = overlap if overlap is not None else settings.chunk_overlap
        self.section_chunker = SectionChunker(chunk_size, overlap, classifier=classifier)
        self.window_chunker = WindowChunker(chunk_size, overlap)

    def segment(self, text: str) -> list[tuple[str, str]]:
        """
        Flatten a note's text into ordered ``(section_label, chunk_text)`` pairs.

        Args:
            text: Cleaned note text

        Returns:
            Body chunks in document order (empty for blank input)
        """
        body = self._flatten(self.section_chunker, text)
        if body:
            return body

        logger.debug("No sections recognized, using window chunker")
        return self._flatten(self.window_chunker, text)

    @staticmethod
    def _flatten(chunker: BaseChunker, text: str) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        for section in chunker.segment(text):
            for chunk in section.chunks:
                stripped = (chunk or "").strip()
                if stripped:
                    pairs.append((section.section_label, stripped))
        return pairs
