"""Base chunker abstract class."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class Section:
    """A labelled run of text split into size-bounded chunks."""

    section_label: str  # Heading text, "Preamble" or "Body"
    chunks: list[str] = field(default_factory=list)


class BaseChunker(ABC):
    """Abstract base class for segmentation strategies."""

    chunker_name: str = "base"

    def __init__(self, chunk_size: int, overlap: int):
        self.chunk_size = chunk_size
        self.overlap = overlap

    @abstractmethod
    def segment(self, text: str) -> list[Section]:
        """
        Split text into labelled sections of chunks.

        Args:
            text: Cleaned note text

        Returns:
            List of Section objects (empty for blank input)
        """
        pass
