"""CLI entry point for notes2rag."""

import asyncio
from pathlib import Path

import click
import structlog

from .chat import ChatService
from .config import settings
from .indexer import NoteIndexer
from .related import RelatedPapers
from .retriever import Retriever
from .router import Router
from .store import IndexStore
from .summarizer import NoteSummarizer
from .utils.embedding_client import EmbeddingError
from .utils.logging_setup import setup_logging
from .utils.text_cleaning import extract_full_text_section, pre_clean_text
from .utils.token_utils import estimate_tokens
from .vault import NoteStore


def _build_services() -> tuple[NoteStore, IndexStore, NoteIndexer, Retriever]:
    notes = NoteStore(settings.vault_dir)
    store = IndexStore(settings.index_path, embedding_model_id=settings.embedding_model)
    indexer = NoteIndexer(store, notes)
    retriever = Retriever(store, indexer)
    return notes, store, indexer, retriever


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option(
    "--vault",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Vault directory (default: settings.vault_dir)",
)
def main(verbose: bool, vault: Path | None):
    """notes2rag - Retrieval-augmented questions over a vault of paper notes."""
    if verbose:
        settings.log_level = "DEBUG"
    if vault is not None:
        settings.vault_dir = vault
    setup_logging()


@main.command()
@click.argument("paths", nargs=-1)
@click.option("--all", "all_notes", is_flag=True, help="Index every note in the vault")
@click.option("--folder", help="Index every note under a vault folder")
@click.option("--force", is_flag=True, help="Reindex notes even when unchanged")
def index(paths: tuple[str, ...], all_notes: bool, folder: str | None, force: bool):
    """Index notes (only changed ones unless --force)."""

    async def _run():
        notes, store, indexer, _ = _build_services()
        targets = list(paths)
        if all_notes or folder:
            targets += await notes.list_documents(folder)
        if not targets:
            click.echo("Nothing to index. Pass note paths, --folder or --all.", err=True)
            raise SystemExit(1)
        await store.load()
        return await indexer.index_documents(dict.fromkeys(targets), force=force)

    report = asyncio.run(_run())

    click.echo(f"\nIndexing complete!")
    click.echo(f"  Indexed: {len(report.indexed)}")
    click.echo(f"  Unchanged: {len(report.skipped)}")
    click.echo(f"  Failed: {len(report.failed)}")
    for path, error in report.failed.items():
        click.echo(f"    {path}: {error}")


@main.command()
@click.argument("query")
@click.option("--doc", "-d", "docs", multiple=True, required=True, help="Note path in scope")
@click.option("--top-k", "-k", type=int, default=None, help="MMR picks before expansion")
def retrieve(query: str, docs: tuple[str, ...], top_k: int | None):
    """Show the chunks retrieved for a query."""

    async def _run():
        _, _, _, retriever = _build_services()
        return await retriever.retrieve(query, docs, top_k)

    try:
        chunks = asyncio.run(_run())
    except EmbeddingError as e:
        click.echo(f"Error: could not embed the query: {e}", err=True)
        raise SystemExit(1)

    if not chunks:
        click.echo("No indexed content in scope.")
        return

    for chunk in chunks:
        preview = chunk.text[:120].replace("\n", " ")
        click.echo(f"  {chunk.label():<40} {chunk.chunk_kind.value:<8} {preview}")
    click.echo(f"\nRetrieved {len(chunks)} chunks")


@main.command()
@click.argument("question")
@click.option("--doc", "-d", "current", required=True, help="Current note path")
@click.option("--extra", "-x", "extras", multiple=True, help="Additional note to compare")
@click.option("--save-chat", is_flag=True, help="Save the exchange to the chats folder")
@click.option("--show-prompt", is_flag=True, help="Print the prompt sent to the model")
def ask(question: str, current: str, extras: tuple[str, ...], save_chat: bool, show_prompt: bool):
    """Ask a question about a note (and optional extra notes)."""

    async def _run():
        notes, _, _, retriever = _build_services()
        chat = ChatService(notes, retriever, NoteSummarizer(notes))

        async for piece in chat.ask(question, current, extras):
            click.echo(piece, nl=False)
        click.echo()

        if show_prompt and chat.last_prompt:
            click.echo("\n--- PROMPT ---")
            click.echo(chat.last_prompt)
        if save_chat:
            path = await chat.save_chat()
            click.echo(f"\nChat saved: {path}")

    asyncio.run(_run())


@main.command()
@click.argument("doc")
@click.option("--limit", "-n", type=int, default=None, help="Maximum related notes")
@click.option("--save", is_flag=True, help="Write the Relevant papers callout into the note")
def related(doc: str, limit: int | None, save: bool):
    """List notes whose summaries are similar to DOC's summary."""

    async def _run():
        finder = RelatedPapers(NoteStore(settings.vault_dir))
        if save:
            return await finder.find_and_save(doc, limit=limit)
        return await finder.find_by_summary_similarity(doc, limit=limit)

    try:
        results = asyncio.run(_run())
    except EmbeddingError as e:
        click.echo(f"Error: could not embed the summary of {doc}: {e}", err=True)
        raise SystemExit(1)

    if not results:
        click.echo("No relevant papers found.")
        return

    for item in results:
        click.echo(f"  {item.score:.3f}  {item.name}")
    if save:
        click.echo(f"\nRelevant papers updated in {doc}")


@main.command("chunk-file")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def chunk_file(file_path: Path):
    """Preview how a note file is segmented (no embedding)."""
    logger = structlog.get_logger(__name__)

    if file_path.suffix.lower() != ".md":
        click.echo(f"Error: Expected markdown file, got {file_path.suffix}", err=True)
        raise SystemExit(1)

    content = file_path.read_text(encoding="utf-8")
    cleaned = pre_clean_text(extract_full_text_section(content) or content)
    body = Router().segment(cleaned)
    logger.debug("Segmented file", path=str(file_path), chunks=len(body))

    for position, (label, text) in enumerate(body):
        click.echo(f"  #{position:<3} {label[:40]:<40} {len(text):>6,} chars  {estimate_tokens(text):>6,} tokens")

    click.echo(f"\n{len(body)} body chunks from {len(cleaned):,} cleaned characters")


if __name__ == "__main__":
    main()
