"""Token estimation utilities using tiktoken."""

import tiktoken

# Cache the encoding instance
_encoding: tiktoken.Encoding | None = None


def _get_encoding() -> tiktoken.Encoding:
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding("cl100k_base")
    return _encoding


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a chunk (0 for empty text)."""
    if not text:
        return 0
    return len(_get_encoding().encode(text))
