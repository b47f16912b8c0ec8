"""Reference-counted arena of loaded source documents."""

from __future__ import annotations

import hashlib
import threading
from collections import Counter
from typing import TYPE_CHECKING, Any

import fitz

from pagecraft.exceptions import (
    CorruptDocumentError,
    DanglingPageRefError,
    ReferenceCountError,
    UnsupportedFileTypeError,
)
from pagecraft.logging import get_logger
from pagecraft.typing.models import SourceDocument

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

_PDF_MAGIC = b"%PDF-"
_MAGIC_SEARCH_WINDOW = 1024


def is_pdf_bytes(data: bytes) -> bool:
    """Return whether the payload carries a PDF header.

    Some producers prepend junk before the header, so the first kilobyte is
    searched rather than only offset zero.

    Args:
        data (bytes): Raw upload payload.

    Returns:
        bool: True when a `%PDF-` marker is present.
    """
    return _PDF_MAGIC in data[:_MAGIC_SEARCH_WINDOW]


def _open_document(data: bytes, filename: str) -> Any:
    """Parse PDF bytes into a PyMuPDF document.

    Args:
        data (bytes): PDF payload.
        filename (str): Upload name, used for error reporting.

    Raises:
        CorruptDocumentError: If the payload cannot be parsed or has no usable pages.

    Returns:
        fitz.Document: Open document handle.
    """
    try:
        handle = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise CorruptDocumentError(filename=filename, exc=exc) from exc

    if handle.needs_pass:
        handle.close()
        raise CorruptDocumentError(filename=filename, reason="document is password protected")
    if handle.page_count < 1:
        handle.close()
        raise CorruptDocumentError(filename=filename, reason="document has no pages")
    return handle


class SourceRegistry:
    """Owns loaded source documents keyed by a content-derived identity.

    Page references hold only the identity. Callers acquire one reference per
    live page and release it on removal; the parsed handle is closed once the
    count drops back to zero. Pins keep a source loaded for the length of an
    assembly without counting as page references.
    """

    def __init__(self) -> None:
        self._sources: dict[str, SourceDocument] = {}
        self._refcounts: Counter[str] = Counter()
        self._pins: Counter[str] = Counter()
        self._orphaned: set[str] = set()
        self._lock = threading.RLock()

    @staticmethod
    def fingerprint(data: bytes) -> str:
        """Compute the stable identity of a PDF payload.

        Args:
            data (bytes): PDF payload.

        Returns:
            str: SHA-256 hex digest.
        """
        return hashlib.sha256(data).hexdigest()

    def register(self, data: bytes, filename: str, last_modified: float | None = None) -> SourceDocument:
        """Load a source document, reusing the existing entry for identical content.

        Args:
            data (bytes): PDF payload.
            filename (str): Upload name.
            last_modified (float | None): Upload modification timestamp.

        Raises:
            UnsupportedFileTypeError: If the payload is not a PDF.

        Returns:
            SourceDocument: New or previously registered source.
        """
        if not is_pdf_bytes(data):
            raise UnsupportedFileTypeError(filename=filename)

        identity = self.fingerprint(data)
        with self._lock:
            existing = self._sources.get(identity)
            if existing is not None:
                logger.debug("Source already registered", extra={"source_id": identity, "filename": filename})
                return existing

            handle = _open_document(data, filename)
            source = SourceDocument(
                identity=identity,
                filename=filename,
                byte_length=len(data),
                last_modified=last_modified,
                page_count=handle.page_count,
                data=data,
                handle=handle,
            )
            self._sources[identity] = source

        logger.info(
            "Source registered",
            extra={"source_id": identity, "filename": filename, "pages": source.page_count},
        )
        return source

    def resolve(self, source_id: str) -> SourceDocument:
        """Return a registered source.

        Args:
            source_id (str): Source identity.

        Raises:
            DanglingPageRefError: If the source was never registered or was released.

        Returns:
            SourceDocument: Registered source.
        """
        with self._lock:
            source = self._sources.get(source_id)
        if source is None:
            raise DanglingPageRefError(source_id=source_id)
        return source

    def acquire(self, source_id: str, count: int = 1) -> int:
        """Record `count` new page references to a source.

        Args:
            source_id (str): Source identity.
            count (int): Number of references taken.

        Raises:
            DanglingPageRefError: If the source is unknown.

        Returns:
            int: Reference count after the update.
        """
        with self._lock:
            if source_id not in self._sources:
                raise DanglingPageRefError(source_id=source_id)
            self._refcounts[source_id] += count
            self._orphaned.discard(source_id)
            return self._refcounts[source_id]

    def release(self, source_id: str, count: int = 1) -> int:
        """Drop `count` page references and free the source when none remain.

        A source that is pinned when its count reaches zero stays loaded until
        the last pin is dropped.

        Args:
            source_id (str): Source identity.
            count (int): Number of references dropped.

        Raises:
            DanglingPageRefError: If the source is unknown.
            ReferenceCountError: If more references are dropped than are held.

        Returns:
            int: Reference count after the update.
        """
        with self._lock:
            if source_id not in self._sources:
                raise DanglingPageRefError(source_id=source_id)
            held = self._refcounts[source_id]
            if count > held:
                raise ReferenceCountError(source_id=source_id, held=held, released=count)
            remaining = held - count
            if remaining:
                self._refcounts[source_id] = remaining
                return remaining
            del self._refcounts[source_id]
            if self._pins[source_id]:
                self._orphaned.add(source_id)
            else:
                self._free(source_id)
        return 0

    def refcount(self, source_id: str) -> int:
        """Return the current page reference count of a source (0 when unknown)."""
        with self._lock:
            return self._refcounts.get(source_id, 0)

    def pin(self, source_id: str) -> SourceDocument:
        """Keep a source loaded without taking a page reference.

        Args:
            source_id (str): Source identity.

        Raises:
            DanglingPageRefError: If the source is unknown.

        Returns:
            SourceDocument: Pinned source.
        """
        with self._lock:
            source = self.resolve(source_id)
            self._pins[source_id] += 1
            return source

    def unpin(self, source_id: str) -> None:
        """Drop a pin; frees the source if its page references were released meanwhile.

        Args:
            source_id (str): Source identity.
        """
        with self._lock:
            self._pins[source_id] -= 1
            if self._pins[source_id] > 0:
                return
            del self._pins[source_id]
            if source_id in self._orphaned:
                self._free(source_id)

    def pinned(self, source_ids: Iterable[str]) -> PinnedSources:
        """Pin each source for the duration of a `with` block.

        Args:
            source_ids (Iterable[str]): Identities to pin; duplicates are pinned once.

        Returns:
            PinnedSources: Context manager yielding the pinned sources in first-seen order.
        """
        return PinnedSources(self, source_ids)

    def prune(self) -> list[str]:
        """Free registered sources that no page references and nothing pins.

        Returns:
            list[str]: Identities that were freed.
        """
        with self._lock:
            unused = [
                source_id
                for source_id in self._sources
                if self._refcounts[source_id] <= 0 and self._pins[source_id] <= 0
            ]
            for source_id in unused:
                self._free(source_id)
        return unused

    def sources(self) -> list[SourceDocument]:
        """Return registered sources in registration order."""
        with self._lock:
            return list(self._sources.values())

    def close(self) -> None:
        """Free every registered source."""
        with self._lock:
            for source_id in list(self._sources):
                self._free(source_id)

    def _free(self, source_id: str) -> None:
        source = self._sources.pop(source_id)
        self._refcounts.pop(source_id, None)
        self._pins.pop(source_id, None)
        self._orphaned.discard(source_id)
        if source.handle is not None:
            source.handle.close()
        logger.info("Source released", extra={"source_id": source_id, "filename": source.filename})

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __contains__(self, source_id: object) -> bool:
        with self._lock:
            return source_id in self._sources


class PinnedSources:
    """Context manager keeping a set of sources loaded while it is entered."""

    def __init__(self, registry: SourceRegistry, source_ids: Iterable[str]) -> None:
        self._registry = registry
        self._source_ids = list(dict.fromkeys(source_ids))
        self._pinned: list[str] = []

    def __enter__(self) -> list[SourceDocument]:
        sources = []
        try:
            for source_id in self._source_ids:
                sources.append(self._registry.pin(source_id))
                self._pinned.append(source_id)
        except BaseException:
            self._unpin_all()
            raise
        return sources

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self._unpin_all()

    def _unpin_all(self) -> None:
        while self._pinned:
            self._registry.unpin(self._pinned.pop())
