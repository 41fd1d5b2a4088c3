"""Related-paper discovery by summary similarity, and the note callout that lists them."""

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from .config import settings
from .retriever import cosine_similarity
from .utils.embedding_client import embed_text
from .utils.text_cleaning import extract_summary_section
from .vault import NoteStore

logger = structlog.get_logger(__name__)

CALLOUT_HEADER = "> [!Relevant papers]"
# Callout header line plus every following quoted line
CALLOUT_BLOCK = re.compile(
    r"^[ \t]*>[ \t]*\[!Relevant papers\][^\n]*(?:\n[ \t]*>[^\n]*)*",
    re.IGNORECASE | re.MULTILINE,
)
WIKI_LINK_TARGET = re.compile(r"\[\[([^\]]+)\]\]")
SUMMARY_HEADING = "## Summary"


@dataclass
class RelatedNote:
    """A note whose summary is similar to the current one."""

    path: str
    name: str
    score: float


def render_callout(names: list[str]) -> str:
    """Render the ``[!Relevant papers]`` callout for the given note names."""
    lines = [CALLOUT_HEADER] + [f"> - [[{name}]]" for name in names]
    return "\n".join(lines)


class RelatedPapers:
    """Finds and records related papers for a note."""

    def __init__(
        self,
        notes: NoteStore,
        embed: Callable[[str], Awaitable[list[float]]] = embed_text,
        summary_chars: Optional[int] = None,
    ):
        self.notes = notes
        self.embed = embed
        self.summary_chars = summary_chars or settings.summary_embed_chars

    async def summary_embedding(self, path: str) -> Optional[list[float]]:
        """Embed the (truncated) ``## Summary`` of a note; None when it has none."""
        summary = extract_summary_section(await self.notes.read(path))
        if not summary:
            return None
        return await self.embed(summary[: self.summary_chars])

    async def find_by_summary_similarity(
        self,
        path: str,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> list[RelatedNote]:
        """
        Rank other notes by cosine similarity of their summaries.

        Args:
            path: Current note
            limit: Maximum results (default: settings.related_limit)
            min_score: Minimum similarity (default: settings.related_min_score)

        Returns:
            Related notes, most similar first
        """
        limit = limit if limit is not None else settings.related_limit
        min_score = min_score if min_score is not None else settings.related_min_score

        current = await self.summary_embedding(path)
        if current is None:
            logger.info("Current note has no summary section", path=path)
            return []

        results: list[RelatedNote] = []
        for other in await self.notes.list_documents():
            if other == path:
                continue
            try:
                vec = await self.summary_embedding(other)
                if vec is None:
                    continue
                score = cosine_similarity(current, vec)
                if score >= min_score:
                    results.append(RelatedNote(other, self.notes.document_name(other), score))
            except Exception as e:
                logger.warning("Similarity check failed", path=other, error=str(e))

        results.sort(key=lambda r: r.score, reverse=True)
        logger.info("Related papers found", path=path, matches=len(results), limit=limit)
        return results[:limit]

    async def read_related_block(self, path: str) -> list[str]:
        """Link targets listed in the note's callout (alias parts dropped)."""
        match = CALLOUT_BLOCK.search(await self.notes.read(path))
        if not match:
            return []
        return [link.split("|")[0].strip() for link in WIKI_LINK_TARGET.findall(match.group(0))]

    async def save_related_block(self, path: str, related_paths: list[str]) -> None:
        """
        Write the callout into the note, replacing an existing one.

        A new callout goes right below ``## Summary`` when the note has that
        heading, otherwise at the top of the note.
        """
        text = await self.notes.read(path)
        block = render_callout([self.notes.document_name(p) for p in related_paths])

        if CALLOUT_BLOCK.search(text):
            updated = CALLOUT_BLOCK.sub(lambda _: block, text, count=1)
        elif SUMMARY_HEADING in text:
            updated = text.replace(SUMMARY_HEADING, f"{SUMMARY_HEADING}\n\n{block}\n", 1)
        else:
            updated = f"{block}\n\n{text}"

        await self.notes.write(path, updated)
        logger.info("Relevant papers updated", path=path, links=len(related_paths))

    async def find_and_save(self, path: str, limit: Optional[int] = None) -> list[RelatedNote]:
        """Find related notes and record them in the callout (nothing written if none)."""
        related = await self.find_by_summary_similarity(path, limit=limit)
        if related:
            await self.save_related_block(path, [r.path for r in related])
        return related
