"""Tests for the embedding/completion clients and the retry decorator."""

import asyncio
from types import SimpleNamespace

import pytest

from notes2rag.utils import embedding_client, llm_client
from notes2rag.utils.embedding_client import EmbeddingError
from notes2rag.utils.llm_client import LLM_FAILURE_MESSAGE, CompletionError
from notes2rag.utils.retry import NonRetryableError, RetryableError, with_retry


def _delta(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class _FakeStream:
    def __init__(self, pieces):
        self.pieces = pieces
        self.closed = False

    def __aiter__(self):
        return self._events()

    async def _events(self):
        for piece in self.pieces:
            yield _delta(piece)

    async def close(self):
        self.closed = True


class _FakeCompletions:
    def __init__(self, stream=None, error=None):
        self.stream = stream
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        if kwargs.get("stream"):
            return self.stream
        message = SimpleNamespace(content="  full answer  ")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_llm(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestStreamLlm:
    def test_yields_non_empty_fragments_and_closes(self, monkeypatch):
        stream = _FakeStream(["Hel", None, "", "lo"])
        completions = _FakeCompletions(stream=stream)
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: _fake_llm(completions))

        async def _run():
            return [piece async for piece in llm_client.stream_llm("prompt")]

        assert asyncio.run(_run()) == ["Hel", "lo"]
        assert stream.closed
        assert completions.kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_early_close_releases_stream(self, monkeypatch):
        stream = _FakeStream(["a", "b", "c"])
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: _fake_llm(_FakeCompletions(stream=stream)))

        async def _run():
            fragments = llm_client.stream_llm("prompt")
            first = await fragments.__anext__()
            await fragments.aclose()
            return first

        assert asyncio.run(_run()) == "a"
        assert stream.closed

    def test_request_failure(self, monkeypatch):
        completions = _FakeCompletions(error=RuntimeError("503"))
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: _fake_llm(completions))

        async def _run():
            return [piece async for piece in llm_client.stream_llm("prompt")]

        with pytest.raises(CompletionError):
            asyncio.run(_run())

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: None)

        async def _run():
            return [piece async for piece in llm_client.stream_llm("prompt")]

        with pytest.raises(CompletionError):
            asyncio.run(_run())


class TestCallLlm:
    def test_success(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: _fake_llm(_FakeCompletions()))
        assert asyncio.run(llm_client.call_llm("prompt")) == "full answer"

    def test_failure_placeholder(self, monkeypatch):
        completions = _FakeCompletions(error=RuntimeError("boom"))
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: _fake_llm(completions))
        assert asyncio.run(llm_client.call_llm("prompt")) == LLM_FAILURE_MESSAGE

    def test_not_configured_placeholder(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_llm_client", lambda: None)
        assert asyncio.run(llm_client.call_llm("prompt")) == LLM_FAILURE_MESSAGE


class _FakeEmbeddings:
    def __init__(self, vector=None, error=None):
        self.vector = vector
        self.error = error

    async def create(self, model, input):
        if self.error:
            raise self.error
        return SimpleNamespace(data=[SimpleNamespace(embedding=self.vector)])


class TestEmbedText:
    def test_returns_vector(self, monkeypatch):
        fake = SimpleNamespace(embeddings=_FakeEmbeddings(vector=[0.1, 0.2]))
        monkeypatch.setattr(embedding_client, "_get_client", lambda: fake)
        assert asyncio.run(embedding_client.embed_text("hello")) == [0.1, 0.2]

    def test_missing_data(self, monkeypatch):
        fake = SimpleNamespace(embeddings=_FakeEmbeddings(vector=[]))
        monkeypatch.setattr(embedding_client, "_get_client", lambda: fake)
        with pytest.raises(EmbeddingError):
            asyncio.run(embedding_client.embed_text("hello"))

    def test_failure_wrapped(self, monkeypatch):
        fake = SimpleNamespace(embeddings=_FakeEmbeddings(error=ValueError("bad request")))
        monkeypatch.setattr(embedding_client, "_get_client", lambda: fake)
        with pytest.raises(EmbeddingError, match="bad request"):
            asyncio.run(embedding_client.embed_text("hello"))

    def test_batch_keeps_order(self, monkeypatch):
        class Echo:
            async def create(self, model, input):
                return SimpleNamespace(data=[SimpleNamespace(embedding=[float(len(input))])])

        monkeypatch.setattr(embedding_client, "_get_client", lambda: SimpleNamespace(embeddings=Echo()))
        assert asyncio.run(embedding_client.embed_texts(["a", "abc"])) == [[1.0], [3.0]]


class TestWithRetry:
    def test_retries_then_succeeds(self):
        attempts = []

        @with_retry(max_retries=2, delay_seconds=0)
        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RetryableError("try again")
            return "ok"

        assert asyncio.run(flaky()) == "ok"
        assert len(attempts) == 3

    def test_gives_up_after_retries(self):
        attempts = []

        @with_retry(max_retries=1, delay_seconds=0)
        async def always_failing():
            attempts.append(1)
            raise RetryableError("still down")

        with pytest.raises(RetryableError):
            asyncio.run(always_failing())
        assert len(attempts) == 2

    def test_non_retryable_raises_immediately(self):
        attempts = []

        @with_retry(max_retries=3, delay_seconds=0)
        async def fatal():
            attempts.append(1)
            raise NonRetryableError("no")

        with pytest.raises(NonRetryableError):
            asyncio.run(fatal())
        assert len(attempts) == 1
