"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when an async operation fails in compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class DependencyError(PackageError):
    """Raised when optional runtime dependencies are missing."""

    missing_package: list[str]
    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Missing runtime dependencies for '{self.message}': {', '.join(self.missing_package)}"


class SourceError(PackageError):
    """Base class for per-file upload failures that do not abort a batch."""


@dataclass(frozen=True)
class UnsupportedFileTypeError(SourceError):
    """Raised when an uploaded file is not a PDF."""

    filename: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Unsupported file type for '{self.filename}': expected a PDF document"


@dataclass(frozen=True)
class CorruptDocumentError(SourceError):
    """Raised when a PDF upload cannot be parsed."""

    filename: str
    reason: str = "document could not be parsed"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        message = f"Could not read PDF '{self.filename}': {self.reason}"
        return f"{message} ({self.exc})" if self.exc else message


@dataclass(frozen=True)
class DanglingPageRefError(PackageError):
    """Raised when a page reference points at a released or unknown source."""

    source_id: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Page reference points at unknown source '{self.source_id}'"


@dataclass(frozen=True)
class PageRefNotFoundError(PackageError):
    """Raised when a stable page id is not part of the sequence."""

    stable_id: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Page '{self.stable_id}' is not in the sequence"


@dataclass(frozen=True)
class PageIndexError(PackageError):
    """Raised when a requested page index is outside a source document."""

    source_id: str
    index: int
    page_count: int

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Page index {self.index} out of range for source '{self.source_id}' ({self.page_count} pages)"


@dataclass(frozen=True)
class InvalidLayoutSpecError(PackageError):
    """Raised when a layout configuration is out of range."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class AssemblyError(PackageError):
    """Raised when composing or serializing the output document fails."""

    message: str
    stage: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message} (during {self.stage})" if self.stage else self.message


@dataclass(frozen=True)
class RasterError(PackageError):
    """Raised when a page cannot be rasterized."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass(frozen=True)
class ReferenceCountError(PackageError):
    """Raised when more references to a source are released than were acquired."""

    source_id: str
    held: int
    released: int

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Cannot release {self.released} reference(s) to source '{self.source_id}': only {self.held} held"
