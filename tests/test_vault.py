"""Tests for the filesystem note store."""

import asyncio

from conftest import write_note


def test_list_documents_sorted_posix_paths(notes):
    write_note(notes, "papers/b.md", "B")
    write_note(notes, "papers/a.md", "A")
    write_note(notes, "top.md", "Top")
    write_note(notes, "papers/figure.png", "not a note")

    assert asyncio.run(notes.list_documents()) == ["papers/a.md", "papers/b.md", "top.md"]


def test_list_documents_scoped_to_folder(notes):
    write_note(notes, "papers/a.md", "A")
    write_note(notes, "other/c.md", "C")

    assert asyncio.run(notes.list_documents("papers")) == ["papers/a.md"]
    assert asyncio.run(notes.list_documents("missing")) == []


def test_write_creates_folders_and_reads_back(notes):
    async def _run():
        await notes.write("Chats/Chat - 1.md", "hello")
        return await notes.exists("Chats/Chat - 1.md"), await notes.read("Chats/Chat - 1.md")

    assert asyncio.run(_run()) == (True, "hello")


def test_modified_time_and_document_name(notes):
    write_note(notes, "papers/Attention.md", "text", mtime=1_234_567.0)

    assert asyncio.run(notes.get_modified_time("papers/Attention.md")) == 1_234_567.0
    assert notes.document_name("papers/Attention.md") == "Attention"
    assert asyncio.run(notes.exists("papers/none.md")) is False
