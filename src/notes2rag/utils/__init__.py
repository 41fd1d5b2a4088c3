"""Utility modules for the retrieval layer."""

from .embedding_client import EmbeddingError, embed_text, embed_texts
from .fingerprint import chunk_id, content_hash
from .llm_client import LLM_FAILURE_MESSAGE, CompletionError, call_llm, stream_llm
from .logging_setup import setup_logging
from .metadata import build_metadata_text, extract_note_metadata
from .retry import NonRetryableError, RetryableError, with_retry
from .text_cleaning import (
    extract_full_text_section,
    extract_summary_section,
    pre_clean_text,
    strip_wiki_links,
    wiki_to_plain,
)

__all__ = [
    "CompletionError",
    "EmbeddingError",
    "LLM_FAILURE_MESSAGE",
    "NonRetryableError",
    "RetryableError",
    "build_metadata_text",
    "call_llm",
    "chunk_id",
    "content_hash",
    "embed_text",
    "embed_texts",
    "extract_full_text_section",
    "extract_note_metadata",
    "extract_summary_section",
    "pre_clean_text",
    "setup_logging",
    "stream_llm",
    "strip_wiki_links",
    "wiki_to_plain",
]
