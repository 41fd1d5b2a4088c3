"""Bibliographic metadata extraction from paper notes."""

import re
from typing import Any, Optional

import structlog
import yaml

from ..schemas.metadata import PaperMetadata
from .text_cleaning import strip_wiki_links

logger = structlog.get_logger(__name__)

FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---", re.DOTALL)

# Line-based fallbacks for notes without usable frontmatter
TITLE_LINE = re.compile(r"^\s*title\s*[:\-]\s*[\"']?(.+?)[\"']?\s*$", re.IGNORECASE | re.MULTILINE)
AUTHORS_LINE = re.compile(r"^\s*authors?\s*[:\-]\s*[\"']?(.+?)[\"']?\s*$", re.IGNORECASE | re.MULTILINE)
VENUE_LINE = re.compile(
    r"^\s*(conference|journal)\s*[:\-]\s*[\"']?(.+?)[\"']?\s*$", re.IGNORECASE | re.MULTILINE
)
KEYWORDS_LINE = re.compile(r"^\s*keywords?\s*[:\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE)
YEAR_LINE = re.compile(r"^\s*year\s*[:\-]\s*[\"']?(\d{4})[\"']?\s*$", re.IGNORECASE | re.MULTILINE)

_TYPED_KEYS = {"title", "authors", "author", "conference", "journal", "keywords", "year"}


def _split_authors(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(a).strip() for a in value if str(a).strip()]
    return [a.strip() for a in re.split(r",| and ", str(value)) if a.strip()]


def _split_keywords(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(k).strip() for k in value if str(k).strip()]
    return [k.strip() for k in re.split(r",|;|\s+", str(value)) if k.strip()]


def _load_frontmatter(note_text: str) -> dict[str, Any]:
    match = FRONTMATTER.match(note_text)
    if not match:
        return {}
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning("Frontmatter YAML parsing failed", error=str(e))
        return {}
    return data if isinstance(data, dict) else {}


def extract_note_metadata(note_text: str) -> PaperMetadata:
    """
    Extract bibliographic metadata from a note.

    YAML frontmatter is read first (``title``, ``authors``/``author``,
    ``conference``/``journal``, ``keywords``, ``year``); fields it does not
    provide are looked up with line patterns in the raw note. Frontmatter keys
    without a typed slot are kept in ``extra``.

    Args:
        note_text: Full markdown text of the note

    Returns:
        PaperMetadata (empty when nothing was found)
    """
    note_text = note_text.replace("\r\n", "\n")
    data = _load_frontmatter(note_text)
    metadata = PaperMetadata()

    if data.get("title"):
        metadata.title = str(data["title"]).strip()
    raw_authors = data.get("authors") or data.get("author")
    if raw_authors:
        metadata.authors = _split_authors(raw_authors)
    venue = data.get("conference") or data.get("journal")
    if venue:
        metadata.venue = str(venue).strip()
    if data.get("keywords"):
        metadata.keywords = _split_keywords(data["keywords"])
    if data.get("year"):
        metadata.year = str(data["year"]).strip()
    metadata.extra = {k: v for k, v in data.items() if k not in _TYPED_KEYS}

    if not metadata.title:
        match = TITLE_LINE.search(note_text)
        if match:
            metadata.title = match.group(1).strip()
    if not metadata.authors:
        match = AUTHORS_LINE.search(note_text)
        if match:
            metadata.authors = _split_authors(match.group(1))
    if not metadata.venue:
        match = VENUE_LINE.search(note_text)
        if match:
            metadata.venue = match.group(2).strip()
    if not metadata.keywords:
        match = KEYWORDS_LINE.search(note_text)
        if match:
            metadata.keywords = _split_keywords(match.group(1))
    if not metadata.year:
        match = YEAR_LINE.search(note_text)
        if match:
            metadata.year = match.group(1)

    return metadata


def _field(value: Optional[Any]) -> str:
    if isinstance(value, list):
        value = ", ".join(strip_wiki_links(str(v)) for v in value)
    text = strip_wiki_links(str(value)) if value else ""
    return text or "N/A"


def build_metadata_text(document_name: str, metadata: PaperMetadata) -> str:
    """
    Render the fixed-layout metadata block embedded as a note's metadata chunk.

    Example:
        === METADATA ===
        Title: Attention Is All You Need
        Authors: Ashish Vaswani, Noam Shazeer
        Venue: NeurIPS
        Keywords: N/A
        Year: 2017
    """
    return "\n".join(
        [
            "=== METADATA ===",
            f"Title: {_field(metadata.title or document_name)}",
            f"Authors: {_field(metadata.authors)}",
            f"Venue: {_field(metadata.venue)}",
            f"Keywords: {_field(metadata.keywords)}",
            f"Year: {_field(metadata.year)}",
        ]
    )
