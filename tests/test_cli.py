"""Tests for CLI error reporting."""

import pytest
from click.testing import CliRunner

from notes2rag import cli
from notes2rag.config import settings
from notes2rag.related import RelatedPapers
from notes2rag.retriever import Retriever
from notes2rag.utils.embedding_client import EmbeddingError


async def _refuse(*args, **kwargs):
    raise EmbeddingError("embedding endpoint unreachable")


@pytest.fixture
def vault(tmp_path, monkeypatch):
    root = tmp_path / "vault"
    root.mkdir()
    monkeypatch.setattr(settings, "vault_dir", root)
    monkeypatch.setattr(settings, "index_path", tmp_path / "index" / "rag_index.json")
    monkeypatch.setattr(cli, "setup_logging", lambda: None)
    return root


def test_retrieve_reports_embedding_failure(vault, monkeypatch):
    monkeypatch.setattr(Retriever, "retrieve", _refuse)

    result = CliRunner().invoke(cli.main, ["--vault", str(vault), "retrieve", "who wrote it?", "-d", "a.md"])

    assert result.exit_code == 1
    assert "could not embed the query" in result.output
    assert "embedding endpoint unreachable" in result.output
    assert not isinstance(result.exception, EmbeddingError)


def test_related_reports_embedding_failure(vault, monkeypatch):
    monkeypatch.setattr(RelatedPapers, "find_by_summary_similarity", _refuse)

    result = CliRunner().invoke(cli.main, ["--vault", str(vault), "related", "a.md"])

    assert result.exit_code == 1
    assert "could not embed the summary of a.md" in result.output
    assert not isinstance(result.exception, EmbeddingError)
