"""Persistence of the vector index as a single JSON file."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from .schemas.index import SCHEMA_VERSION, RagIndex

logger = structlog.get_logger(__name__)


class IndexStore:
    """
    Single owner of the persisted chunk collection.

    The indexer and the retriever share one store object and go through
    ``index`` / ``save()``; neither keeps its own copy of the chunks.
    """

    def __init__(self, path: Path, embedding_model_id: str = ""):
        self.path = Path(path)
        self.embedding_model_id = embedding_model_id
        self._index: Optional[RagIndex] = None

    @property
    def index(self) -> RagIndex:
        if self._index is None:
            raise RuntimeError("Index not loaded; call load() or ensure_loaded() first")
        return self._index

    @property
    def loaded(self) -> bool:
        return self._index is not None

    async def ensure_loaded(self) -> RagIndex:
        if self._index is None:
            await self.load()
        return self.index

    async def load(self) -> RagIndex:
        """
        Load the index from disk.

        A missing or unparsable file is replaced by an empty index, which is
        written back immediately. Schema or model mismatches are kept as-is.
        """
        index = await asyncio.to_thread(self._read)

        if index is None:
            self._index = RagIndex(embedding_model_id=self.embedding_model_id)
            await self.save()
            logger.info("Created empty index", path=str(self.path))
            return self._index

        if index.schema_version != SCHEMA_VERSION:
            logger.warning(
                "Index schema version differs",
                found=index.schema_version,
                expected=SCHEMA_VERSION,
            )
        if self.embedding_model_id and index.embedding_model_id != self.embedding_model_id:
            logger.warning(
                "Index was built with a different embedding model",
                found=index.embedding_model_id,
                configured=self.embedding_model_id,
            )

        self._index = index
        logger.info("Loaded index", path=str(self.path), chunks=len(index.chunks))
        return index

    def _read(self) -> Optional[RagIndex]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return RagIndex.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Malformed index file, starting empty", path=str(self.path), error=str(e))
            return None

    async def save(self) -> None:
        """Rewrite the whole index file."""
        payload = self.index.model_dump_json(indent=2)

        def _write() -> None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")

        await asyncio.to_thread(_write)
        logger.debug("Index saved", path=str(self.path), chunks=len(self.index.chunks))
