"""notes2rag - chunk-level retrieval over a vault of paper notes."""

__version__ = "0.1.0"
