"""Embedding client for the OpenAI embeddings API."""

from typing import Optional

import openai
import structlog
from openai import AsyncOpenAI

from ..config import settings
from .retry import with_retry

logger = structlog.get_logger(__name__)

# Module-level client (lazy initialized)
_client: Optional[AsyncOpenAI] = None

# Transient failures worth another attempt
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class EmbeddingError(Exception):
    """An embedding could not be obtained for a text."""

    pass


def _get_client() -> AsyncOpenAI:
    """Get or create the async OpenAI client for embeddings."""
    global _client
    if _client is None:
        if not settings.openai_api_key:
            raise EmbeddingError("OpenAI API key not configured for embeddings")
        _client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    return _client


@with_retry(
    max_retries=settings.embedding_max_retries,
    delay_seconds=settings.retry_delay_seconds,
    retryable_exceptions=TRANSIENT_ERRORS,
)
async def _create_embedding(client: AsyncOpenAI, text: str, model: str) -> list[float]:
    response = await client.embeddings.create(model=model, input=text)
    if not response.data or not response.data[0].embedding:
        raise EmbeddingError("Embeddings response missing data[0].embedding")
    return list(response.data[0].embedding)


async def embed_text(text: str, model: Optional[str] = None) -> list[float]:
    """
    Convert a text into its embedding vector.

    Args:
        text: Text to embed
        model: Embedding model (default: settings.embedding_model)

    Returns:
        Embedding vector.

    Raises:
        EmbeddingError: If the client is not configured or the call fails.
    """
    model = model or settings.embedding_model
    client = _get_client()

    try:
        embedding = await _create_embedding(client, text, model)
    except EmbeddingError:
        raise
    except Exception as e:
        logger.error("Embedding API call failed", model=model, error=str(e))
        raise EmbeddingError(str(e)) from e

    logger.debug("Embedding retrieved", model=model, chars=len(text), dimensions=len(embedding))
    return embedding


async def embed_texts(texts: list[str], model: Optional[str] = None) -> list[list[float]]:
    """
    Embed several texts one after another, preserving order.

    Raises:
        EmbeddingError: On the first failing text.
    """
    return [await embed_text(text, model=model) for text in texts]
