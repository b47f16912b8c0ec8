"""Source document and page reference models."""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class SourceDocument(BaseModel):
    """A loaded source PDF owned by the source registry."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    identity: str = Field(description="SHA-256 hex digest of the document bytes.")
    filename: str
    byte_length: int = Field(ge=0)
    last_modified: float | None = None
    page_count: int = Field(ge=1)
    data: bytes = Field(repr=False, exclude=True)
    handle: Any = Field(default=None, repr=False, exclude=True)


class PageRef(BaseModel):
    """Stable handle for one page-instance in the working sequence."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    stable_id: UUID = Field(default_factory=uuid4)
    source_id: str
    original_index: int = Field(ge=0)


class UploadFile(BaseModel):
    """One uploaded file as handed over by the caller."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    filename: str
    data: bytes = Field(repr=False)
    last_modified: float | None = None


class UploadFailure(BaseModel):
    """Per-file upload failure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    filename: str
    reason: str
    error_type: str


class UploadReport(BaseModel):
    """Outcome of a batch upload."""

    model_config = ConfigDict(extra="forbid")

    sources: list[SourceDocument] = Field(default_factory=list)
    page_refs: list[PageRef] = Field(default_factory=list)
    failures: list[UploadFailure] = Field(default_factory=list)

    @property
    def failed_filenames(self) -> list[str]:
        """Return names of files that could not be added."""
        return [failure.filename for failure in self.failures]
