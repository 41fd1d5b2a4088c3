"""Bibliographic metadata of a paper note."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class PaperMetadata(BaseModel):
    """Typed metadata record extracted from a note."""

    title: Optional[str] = Field(default=None)
    authors: list[str] = Field(default_factory=list)
    venue: Optional[str] = Field(default=None, description="Conference or journal")
    keywords: list[str] = Field(default_factory=list)
    year: Optional[str] = Field(default=None)
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Frontmatter fields without a typed slot"
    )

    def is_empty(self) -> bool:
        """True when none of the typed fields is set."""
        return not (self.title or self.authors or self.venue or self.keywords or self.year)


class PaperPack(BaseModel):
    """Metadata plus summary of one paper, fed to the multi-paper prompt."""

    paper_id: str = Field(..., description="Note path or short id such as CURRENT / EXTRA_1")
    file_name: str = Field(..., description="Note display name")
    metadata: PaperMetadata = Field(default_factory=PaperMetadata)
    summary: str = Field(default="")
