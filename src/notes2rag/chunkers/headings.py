"""Heading classification for paper-style plain text."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

# Section names that appear in nearly every academic paper
KNOWN_SECTIONS = frozenset(
    {
        "abstract",
        "introduction",
        "background",
        "related work",
        "method",
        "methods",
        "methodology",
        "approach",
        "experiments",
        "results",
        "discussion",
        "conclusion",
        "conclusions",
        "references",
        "bibliography",
        "appendix",
        "acknowledgements",
        "limitations",
    }
)

# "1 Introduction", "2.3 Experimental Setup"
NUMBERED_HEADING = re.compile(r"^\d+(\.\d+)*\s+[A-Za-z].{2,80}$")
# "RELATED WORK", "3 - EVALUATION" style lines from PDF extraction
ALL_CAPS_HEADING = re.compile(r"^[A-Z][A-Z0-9\s\-:]{3,80}$")
MAX_CAPS_WORDS = 10


@dataclass(frozen=True)
class Heading:
    """A line recognized as a section heading."""

    label: str
    rule: str  # "known", "numbered" or "caps"


class HeadingClassifier(ABC):
    """Decides whether a single line is a section heading."""

    @abstractmethod
    def classify(self, line: str) -> Optional[Heading]:
        """Return a Heading for heading lines, None otherwise."""
        pass


class PatternHeadingClassifier(HeadingClassifier):
    """Vocabulary and regex based heading detection."""

    def classify(self, line: str) -> Optional[Heading]:
        text = (line or "").strip()
        if len(text) < 3:
            return None

        if text.lower() in KNOWN_SECTIONS:
            return Heading(label=text, rule="known")

        if NUMBERED_HEADING.match(text):
            return Heading(label=text, rule="numbered")

        if ALL_CAPS_HEADING.match(text) and len(text.split(" ")) <= MAX_CAPS_WORDS:
            return Heading(label=text, rule="caps")

        return None
