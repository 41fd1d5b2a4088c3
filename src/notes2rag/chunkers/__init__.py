"""Segmentation strategies for note text."""

from .base import BaseChunker, Section
from .headings import Heading, HeadingClassifier, PatternHeadingClassifier
from .section_chunker import SectionChunker, pack_paragraphs, segment_by_sections
from .window_chunker import WindowChunker, chunk_text

__all__ = [
    "BaseChunker",
    "Heading",
    "HeadingClassifier",
    "PatternHeadingClassifier",
    "Section",
    "SectionChunker",
    "WindowChunker",
    "chunk_text",
    "pack_paragraphs",
    "segment_by_sections",
]
