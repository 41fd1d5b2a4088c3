"""LLM client wrapper for chat-completion calls (Groq, OpenAI-compatible)."""

from typing import Any, AsyncIterator, Optional

import structlog
from openai import AsyncOpenAI

from ..config import settings

logger = structlog.get_logger(__name__)

# Module-level client (lazy initialized)
_client: Optional[AsyncOpenAI] = None

# Returned in place of an answer when a non-streaming call fails
LLM_FAILURE_MESSAGE = "LLM analysis failed."


class CompletionError(Exception):
    """A completion request could not be served."""

    pass


def get_llm_client() -> Optional[AsyncOpenAI]:
    """
    Get or create the async client for the completion endpoint.

    Returns:
        AsyncOpenAI client, or None if API key not configured.
    """
    global _client

    if _client is None:
        if not settings.groq_api_key:
            logger.warning("Groq API key not configured")
            return None

        _client = AsyncOpenAI(
            api_key=settings.groq_api_key,
            base_url=settings.groq_base_url,
        )

    return _client


def _request_kwargs(
    prompt: str,
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> dict[str, Any]:
    return {
        "model": model or settings.chat_model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": temperature if temperature is not None else settings.chat_temperature,
        "max_tokens": max_tokens if max_tokens is not None else settings.chat_max_tokens,
    }


async def call_llm(
    prompt: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """
    Call the LLM with a single user prompt.

    Args:
        prompt: User prompt
        model: Model to use (default: settings.chat_model)
        temperature: Sampling temperature (default: settings.chat_temperature)
        max_tokens: Maximum tokens in response (default: settings.chat_max_tokens)

    Returns:
        LLM response text, or LLM_FAILURE_MESSAGE on failure.
    """
    client = get_llm_client()
    if client is None:
        return LLM_FAILURE_MESSAGE

    kwargs = _request_kwargs(prompt, model, temperature, max_tokens)

    try:
        response = await client.chat.completions.create(**kwargs)
        result = (response.choices[0].message.content or "").strip()
        logger.debug("LLM call successful", model=kwargs["model"], response_length=len(result))
        return result

    except Exception as e:
        logger.error("LLM call failed", model=kwargs["model"], error=str(e))
        return LLM_FAILURE_MESSAGE


async def stream_llm(
    prompt: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> AsyncIterator[str]:
    """
    Stream a completion as incremental text fragments.

    The generator ends when the provider signals end of stream. A consumer
    may stop iterating at any point; closing the generator closes the
    underlying HTTP response.

    Raises:
        CompletionError: If the client is not configured or the request fails.
    """
    client = get_llm_client()
    if client is None:
        raise CompletionError("Completion client not configured")

    kwargs = _request_kwargs(prompt, model, temperature, max_tokens)
    logger.debug("Streaming completion", model=kwargs["model"], prompt_chars=len(prompt))

    try:
        stream = await client.chat.completions.create(**kwargs, stream=True)
    except Exception as e:
        logger.error("LLM stream request failed", model=kwargs["model"], error=str(e))
        raise CompletionError(str(e)) from e

    assembled = 0
    try:
        async for event in stream:
            if not event.choices:
                continue
            piece = event.choices[0].delta.content if event.choices[0].delta else None
            if piece:
                assembled += len(piece)
                yield piece
    finally:
        await stream.close()
        logger.debug("LLM stream closed", model=kwargs["model"], response_length=assembled)
