"""Prompt templates and context assembly for the completion model."""

import re
from typing import Optional

from .config import settings
from .schemas.chunk import Chunk
from .schemas.metadata import PaperMetadata, PaperPack
from .utils.text_cleaning import wiki_to_plain

# Keyword test for bibliographic questions; coverage is best effort
METADATA_QUERY = re.compile(r"author|title|who wrote|venue|published", re.IGNORECASE)

ELLIPSIS = "..."

RAG_PROMPT_TEMPLATE = """You are a precise academic record keeper.

### CRITICAL RULE:
The block marked "SOURCE TYPE: META" contains the definitive bibliographic data.
If the user asks for authors, you MUST list the names found in the META block.

--- CONTEXT ---
{context}
--- END CONTEXT ---

Question: {question}
Final Answer:"""

MULTI_PAPER_PROMPT_TEMPLATE = """You are an academic assistant.
Task:
1) Scan ALL context sources [#1..#N] and extract the minimal quotes (1-3 sentences) that answer the question.
2) Then write the final answer using those quotes.
Rules:
- Use ONLY the context.
- If the answer is not present, say exactly what section is missing.
- Cite sources like [#2] after supported sentences.

--- CONTEXT ---
{context}
--- END CONTEXT ---

User question: {question}

First, extract evidence bullets with citations, then answer."""

PAPER_BLOCK_TEMPLATE = """=== PAPER {number} ===
PaperID: {paper_id}
FileName: {file_name}
Title: {title}
Authors: {authors}
Authors_normalized: {authors_normalized}
Venue: {venue}
Keywords: {keywords}

Summary:
{summary}"""

CONSOLIDATION_PROMPT_TEMPLATE = """You are given several partial summaries from chunks of an academic paper. Combine them into one concise, cohesive summary paragraph.

--- PARTIAL SUMMARIES ---
{summaries}
--- END ---"""


def is_metadata_query(query: str) -> bool:
    """True for questions about authors, titles, venues or publication."""
    return bool(METADATA_QUERY.search(query or ""))


def _block_header(number: int, chunk: Chunk) -> str:
    return f"[#{number}] SOURCE TYPE: {chunk.chunk_kind.value.upper()}\n"


def build_rag_prompt(
    query: str,
    chunks: list[Chunk],
    budget_chars: Optional[int] = None,
    min_block_chars: Optional[int] = None,
) -> str:
    """
    Assemble the retrieval-augmented prompt.

    Metadata chunks go first (order otherwise kept). Blocks are added while
    more than ``min_block_chars`` of the budget remain after the block
    header; a block longer than the remaining budget is cut with an
    ellipsis and closes the context.

    Args:
        query: User question
        chunks: Retrieved chunks
        budget_chars: Context budget (default: 4000 for metadata questions, else 12000)
        min_block_chars: Stop threshold (default: settings.min_block_chars)

    Returns:
        Complete prompt text
    """
    if budget_chars is None:
        budget_chars = (
            settings.metadata_prompt_budget_chars
            if is_metadata_query(query)
            else settings.prompt_budget_chars
        )
    if min_block_chars is None:
        min_block_chars = settings.min_block_chars

    ordered = [c for c in chunks if c.is_metadata] + [c for c in chunks if not c.is_metadata]

    used = 0
    blocks: list[str] = []
    for number, chunk in enumerate(ordered, start=1):
        header = _block_header(number, chunk)
        remain = budget_chars - used - len(header)
        if remain <= min_block_chars:
            break

        if len(chunk.text) > remain:
            blocks.append(header + chunk.text[:remain] + ELLIPSIS)
            break

        blocks.append(header + chunk.text)
        used += len(header) + len(chunk.text)

    return RAG_PROMPT_TEMPLATE.format(context="\n\n".join(blocks), question=query)


def build_multi_paper_prompt(query: str, papers: list[PaperPack]) -> str:
    """
    Assemble a question over whole papers, one block of metadata and summary each.

    Titles fall back to a wiki link of the file name; authors are listed both
    as written and reduced to plain names.
    """
    blocks = []
    for number, paper in enumerate(papers, start=1):
        md = paper.metadata
        authors = [a.strip() for a in md.authors if a and a.strip()]
        normalized = [n for n in (wiki_to_plain(a) for a in authors) if n]

        blocks.append(
            PAPER_BLOCK_TEMPLATE.format(
                number=number,
                paper_id=paper.paper_id,
                file_name=paper.file_name,
                title=md.title or f"[[{paper.file_name}]]",
                authors=", ".join(authors) or "N/A",
                authors_normalized=", ".join(normalized) or "N/A",
                venue=md.venue or "N/A",
                keywords=", ".join(md.keywords) or "N/A",
                summary=paper.summary,
            )
        )

    return MULTI_PAPER_PROMPT_TEMPLATE.format(context="\n\n".join(blocks), question=query)


def metadata_note(metadata: PaperMetadata) -> str:
    """Short metadata preamble attached to the first summarization window."""
    return (
        "\n\n---\n"
        f"Title: {metadata.title or 'N/A'}\n"
        f"Authors: {', '.join(metadata.authors) or 'N/A'}\n"
        f"Conference/Journal: {metadata.venue or 'N/A'}\n"
        f"Keywords: {', '.join(metadata.keywords) or 'N/A'}\n"
        "---\n"
    )


def build_chunk_summary_prompt(
    text: str,
    number: int,
    total: int,
    metadata: Optional[PaperMetadata] = None,
    note_name: Optional[str] = None,
) -> str:
    """
    Prompt summarizing one window of a paper.

    The first window asks for metadata as well and carries the metadata
    note; later windows ask to continue.
    """
    subject = f" of note {note_name}" if note_name else ""
    if number == 1:
        prefix = (
            f"You are reading an academic paper. This is the first chunk ({number}/{total}){subject}. "
            "Extract metadata if available, and summarize concisely."
        )
        note = metadata_note(metadata) if metadata is not None and not metadata.is_empty() else ""
    else:
        prefix = f"This is chunk {number}/{total}{subject}. Continue summarizing concisely."
        note = ""
    return f"{prefix}{note}\n\n{text}"


def build_consolidation_prompt(summaries: list[str]) -> str:
    """Prompt merging per-window summaries into one paragraph."""
    numbered = "\n\n".join(f"Summary {i}: {s}" for i, s in enumerate(summaries, start=1))
    return CONSOLIDATION_PROMPT_TEMPLATE.format(summaries=numbered)


def build_fallback_summary_prompt(note_text: str) -> str:
    """Prompt for notes without extractable paper text."""
    return f"Summarize this note concisely:\n\n{note_text}"
