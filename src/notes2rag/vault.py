"""Filesystem-backed note store (the document collection)."""

import asyncio
from pathlib import Path, PurePosixPath
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

NOTE_SUFFIX = ".md"


class NoteStore:
    """
    Read and write markdown notes under a vault root.

    Document paths are vault-relative POSIX strings such as
    ``papers/Attention.md``. All file I/O runs in a worker thread so the
    event loop is never blocked.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def resolve(self, path: str) -> Path:
        """Absolute filesystem path of a vault-relative document path."""
        return self.root / PurePosixPath(path)

    @staticmethod
    def document_name(path: str) -> str:
        """Display name of a note: basename without extension."""
        return PurePosixPath(path).stem

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self.resolve(path).read_text, encoding="utf-8")

    async def write(self, path: str, text: str) -> None:
        target = self.resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")

        await asyncio.to_thread(_write)
        logger.debug("Note written", path=path, chars=len(text))

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self.resolve(path).is_file)

    async def get_modified_time(self, path: str) -> float:
        """Modification time of a note in epoch seconds."""
        stat = await asyncio.to_thread(self.resolve(path).stat)
        return stat.st_mtime

    async def list_documents(self, scope_hint: Optional[str] = None) -> list[str]:
        """
        List markdown notes, sorted by path.

        Args:
            scope_hint: Optional vault-relative folder to restrict the listing to

        Returns:
            Vault-relative POSIX paths
        """
        base = self.resolve(scope_hint) if scope_hint else self.root

        def _scan() -> list[str]:
            if not base.is_dir():
                return []
            return sorted(
                p.relative_to(self.root).as_posix()
                for p in base.rglob(f"*{NOTE_SUFFIX}")
                if p.is_file()
            )

        return await asyncio.to_thread(_scan)
