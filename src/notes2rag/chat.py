"""Chat orchestration: scope handling, prompt choice and streamed answers."""

from contextlib import aclosing
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, Optional

import structlog

from .config import settings
from .prompting import build_multi_paper_prompt, build_rag_prompt
from .retriever import Retriever, unique_scope
from .schemas.chat import ChatMessage, ChatSession
from .summarizer import NoteSummarizer
from .utils.llm_client import stream_llm
from .vault import NoteStore

logger = structlog.get_logger(__name__)

Streamer = Callable[[str], AsyncIterator[str]]

NO_CONTENT_MESSAGE = (
    "I could not find any indexed content for this question (or the context is empty). "
    "Please index the notes first or check their PDF text section."
)

ROLE_LABELS = {"user": "You", "assistant": "Assistant"}


def _file_timestamp(moment: datetime) -> str:
    return moment.isoformat().replace(":", "-").replace(".", "-")


class ChatService:
    """
    Answers questions about the current note, optionally together with extras.

    With extra notes the question is put to whole-paper summaries; otherwise
    it goes through chunk retrieval. Each exchange is recorded in ``session``.
    """

    def __init__(
        self,
        notes: NoteStore,
        retriever: Retriever,
        summarizer: NoteSummarizer,
        stream: Streamer = stream_llm,
        session: Optional[ChatSession] = None,
    ):
        self.notes = notes
        self.retriever = retriever
        self.summarizer = summarizer
        self.stream = stream
        self.session = session or ChatSession()
        self.last_prompt: Optional[str] = None

    async def build_prompt(self, question: str, current: str, extras: list[str]) -> Optional[str]:
        """Prompt for one question, or None when retrieval found nothing."""
        if extras:
            papers = [await self.summarizer.summarize_note(current, paper_id="CURRENT")]
            for number, path in enumerate(extras, start=1):
                papers.append(await self.summarizer.summarize_note(path, paper_id=f"EXTRA_{number}"))
            logger.info("Multi-paper question", papers=[p.file_name for p in papers])
            return build_multi_paper_prompt(question, papers)

        chunks = await self.retriever.retrieve(question, [current])
        if not chunks:
            return None
        logger.info("RAG question", retrieved=[c.label() for c in chunks])
        return build_rag_prompt(question, chunks)

    async def ask(self, question: str, current: str, extras: Iterable[str] = ()) -> AsyncIterator[str]:
        """
        Stream the answer to a question as text fragments.

        Failures never propagate: they end the answer with an
        ``[Error: ...]`` fragment. Closing the iterator early closes the
        completion stream.

        Args:
            question: User question
            current: Path of the note the question is about
            extras: Additional notes to compare against
        """
        scope = unique_scope([current, *extras])
        extra_paths = scope[1:]
        self.session.scope = scope

        self.session.messages.append(ChatMessage(role="user", content=question))
        answer = ChatMessage(role="assistant", content="")
        self.session.messages.append(answer)

        try:
            prompt = await self.build_prompt(question, current, extra_paths)
            if prompt is None:
                answer.content = NO_CONTENT_MESSAGE
                yield NO_CONTENT_MESSAGE
                return

            self.last_prompt = prompt
            logger.debug("Prompt assembled", chars=len(prompt))

            async with aclosing(self.stream(prompt)) as fragments:
                async for piece in fragments:
                    answer.content += piece
                    yield piece
        except Exception as e:
            logger.error("Chat answer failed", error=str(e))
            message = f"\n\n[Error: {e}]"
            answer.content += message
            yield message

    async def answer(self, question: str, current: str, extras: Iterable[str] = ()) -> str:
        """Collect the full answer of ``ask``."""
        parts = [piece async for piece in self.ask(question, current, extras)]
        return "".join(parts)

    def render_chat(self, session: Optional[ChatSession] = None) -> str:
        """Markdown rendering of a chat session with frontmatter."""
        session = session or self.session
        header = "\n".join(
            [
                "---",
                f"model: {settings.chat_model}",
                f"created: {datetime.now().isoformat()}",
                f"scope: [{', '.join(session.scope)}]",
                "---",
            ]
        )
        turns = "\n\n".join(
            f"**{ROLE_LABELS.get(m.role, m.role)}** ({m.timestamp.isoformat()}):\n{m.content}"
            for m in session.messages
        )
        return f"{header}\n\n{turns}\n"

    async def save_chat(self, session: Optional[ChatSession] = None) -> str:
        """
        Save a chat session as a note in the chats folder.

        Returns:
            Vault-relative path of the written note
        """
        session = session or self.session
        path = f"{settings.chats_dir}/Chat - {_file_timestamp(datetime.now())}.md"
        await self.notes.write(path, self.render_chat(session))
        logger.info("Chat saved", path=path, messages=len(session.messages))
        return path
