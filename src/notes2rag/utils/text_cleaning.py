"""Normalization of extracted paper text and note section helpers."""

import re

# Sections written into paper notes by the import workflow
FULL_TEXT_SECTION = re.compile(
    r"##\s*Full Text Extracted from PDF\s*\n(.*?)(?=\n##|\Z)", re.IGNORECASE | re.DOTALL
)
SUMMARY_SECTION = re.compile(r"##\s*Summary\s*\n(.*?)(?:\n##|\Z)", re.IGNORECASE | re.DOTALL)

WIKI_LINK = re.compile(r"^\[\[(.*)\]\]$")

# Boiler-plate lines left behind by PDF extraction
_PAGE_NUMBER_LINE = re.compile(r"^\s*\d+\s*$", re.MULTILINE)
_CAPTION_LINE = re.compile(
    r"^\s*(fig|figure|table|doi|arxiv|page|citation|see profile|reads|uploads|publications?|citations?)[:\s].*$",
    re.IGNORECASE | re.MULTILINE,
)
_PORTAL_NOISE = re.compile(
    r"(researchgate\.net|SEE PROFILE|READS|CITATIONS|uploaded by|downloads?|https?://[^\s]+)",
    re.IGNORECASE,
)
_EMAIL_GROUP = re.compile(r"\{.*?\}@.*?\.\w{2,}")
_CITATION_MARKER = re.compile(r"\[\d+(?:,\s*\d+)*\]")


def pre_clean_text(text: str) -> str:
    """
    Normalize text extracted from a PDF before chunking.

    Joins words hyphenated across line breaks, collapses blank lines, drops
    page numbers, captions, portal boiler-plate, URLs, grouped e-mail
    addresses and numeric citation markers, then trims every line.

    Args:
        text: Raw extracted text

    Returns:
        Cleaned text (empty string for empty input)
    """
    if not text:
        return ""

    cleaned = re.sub(r"\r\n|\r", "\n", text)
    cleaned = re.sub(r"([a-zA-Z])- *\n *([a-zA-Z])", r"\1\2", cleaned)
    cleaned = re.sub(r"\n{2,}", "\n\n", cleaned)
    cleaned = _PAGE_NUMBER_LINE.sub("", cleaned)
    cleaned = _CAPTION_LINE.sub("", cleaned)
    cleaned = _PORTAL_NOISE.sub("", cleaned)
    cleaned = _EMAIL_GROUP.sub("", cleaned)
    cleaned = _CITATION_MARKER.sub("", cleaned)
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    return cleaned.strip()


def extract_full_text_section(note_text: str) -> str:
    """
    Get the ``## Full Text Extracted from PDF`` section of a note.

    A surrounding code fence is removed. Returns an empty string when the
    note has no such section.
    """
    match = FULL_TEXT_SECTION.search(note_text)
    raw = match.group(1).strip() if match else ""
    raw = re.sub(r"^```.*?\n", "", raw, count=1, flags=re.DOTALL)
    raw = re.sub(r"\n```$", "", raw)
    return raw.strip()


def extract_summary_section(note_text: str) -> str:
    """Get the body of the note's ``## Summary`` section ("" if absent)."""
    match = SUMMARY_SECTION.search(note_text)
    return match.group(1).strip() if match else ""


def strip_wiki_links(text: str) -> str:
    """Remove ``[[`` and ``]]`` while keeping the link text."""
    if not text:
        return ""
    return text.replace("[[", "").replace("]]", "")


def wiki_to_plain(value: str) -> str:
    """
    Reduce a wiki link to its display text.

    ``[[A|B]]`` -> ``B``, ``[[B]]`` -> ``B``; other values are trimmed and
    stripped of surrounding double quotes.
    """
    text = str(value).strip()
    match = WIKI_LINK.match(text)
    if not match:
        return text.strip('"').strip()
    inner = match.group(1)
    return inner.split("|")[-1].strip('"').strip()
