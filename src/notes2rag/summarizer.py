"""Paper summaries for the multi-paper question path."""

from typing import Awaitable, Callable, Iterable, Optional

import structlog

from .config import settings
from .prompting import (
    build_chunk_summary_prompt,
    build_consolidation_prompt,
    build_fallback_summary_prompt,
)
from .schemas.metadata import PaperMetadata, PaperPack
from .utils.llm_client import call_llm
from .utils.metadata import extract_note_metadata
from .utils.text_cleaning import extract_full_text_section, extract_summary_section, pre_clean_text
from .vault import NoteStore

logger = structlog.get_logger(__name__)

Completer = Callable[[str], Awaitable[str]]


def split_windows(text: str, size: int) -> list[str]:
    """Cut text into consecutive windows of ``size`` characters."""
    return [text[i : i + size] for i in range(0, len(text), size)]


class NoteSummarizer:
    """Summarizes paper notes with the completion model."""

    def __init__(
        self,
        notes: NoteStore,
        complete: Completer = call_llm,
        window_chars: Optional[int] = None,
    ):
        self.notes = notes
        self.complete = complete
        self.window_chars = window_chars or settings.summary_chunk_chars

    async def summarize_text(
        self,
        note_text: str,
        metadata: PaperMetadata,
        note_name: Optional[str] = None,
    ) -> str:
        """
        Summarize a paper window by window, then consolidate.

        Notes without extractable paper text are summarized as a whole.
        """
        cleaned = pre_clean_text(extract_full_text_section(note_text))
        if not cleaned.strip():
            return (await self.complete(build_fallback_summary_prompt(note_text))).strip()

        windows = split_windows(cleaned, self.window_chars)
        partials: list[str] = []
        for number, window in enumerate(windows, start=1):
            prompt = build_chunk_summary_prompt(window, number, len(windows), metadata, note_name)
            partials.append((await self.complete(prompt)).strip())

        logger.debug("Window summaries done", note=note_name, windows=len(windows))
        return (await self.complete(build_consolidation_prompt(partials))).strip()

    async def summarize_note(self, path: str, paper_id: Optional[str] = None) -> PaperPack:
        """
        Build a PaperPack with a fresh LLM summary of one note.

        Args:
            path: Vault-relative note path
            paper_id: Id shown to the model (default: the path)

        Returns:
            PaperPack; on failure the summary is empty and the error is logged.
        """
        name = self.notes.document_name(path)
        pack = PaperPack(paper_id=paper_id or path, file_name=name)

        try:
            note_text = await self.notes.read(path)
            pack.metadata = extract_note_metadata(note_text)
            pack.summary = await self.summarize_text(note_text, pack.metadata, note_name=name)
        except Exception as e:
            logger.warning("Failed to summarize note", path=path, error=str(e))
            pack.summary = ""

        logger.info("Summarized note", path=path, summary_chars=len(pack.summary))
        return pack

    async def collect_paper_packs(self, paths: Iterable[str]) -> list[PaperPack]:
        """
        Read metadata and the existing ``## Summary`` section of each note.

        No LLM call is made; notes without a summary get an empty one.
        """
        packs: list[PaperPack] = []
        for path in paths:
            try:
                note_text = await self.notes.read(path)
            except OSError as e:
                logger.warning("Could not read note", path=path, error=str(e))
                continue
            packs.append(
                PaperPack(
                    paper_id=path,
                    file_name=self.notes.document_name(path),
                    metadata=extract_note_metadata(note_text),
                    summary=extract_summary_section(note_text),
                )
            )
        return packs
