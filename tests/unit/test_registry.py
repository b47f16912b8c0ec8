from __future__ import annotations

import pytest

from pagecraft.exceptions import (
    CorruptDocumentError,
    DanglingPageRefError,
    ReferenceCountError,
    UnsupportedFileTypeError,
)
from pagecraft.registry import SourceRegistry, is_pdf_bytes

_PDF_A = b"%PDF-1.7 first document"
_PDF_B = b"%PDF-1.7 second document"


def test_is_pdf_bytes_searches_leading_window() -> None:
    assert is_pdf_bytes(_PDF_A)
    assert is_pdf_bytes(b"\x00junk" + _PDF_A)
    assert not is_pdf_bytes(b"GIF89a")
    assert not is_pdf_bytes(b"x" * 2048 + _PDF_A)


def test_register_creates_source(fake_fitz) -> None:
    registry = SourceRegistry()

    source = registry.register(_PDF_A, "a.pdf", last_modified=12.5)

    assert source.identity == SourceRegistry.fingerprint(_PDF_A)
    assert source.filename == "a.pdf"
    assert source.page_count == 3
    assert source.byte_length == len(_PDF_A)
    assert source.last_modified == 12.5
    assert source.identity in registry
    assert len(registry) == 1


def test_register_deduplicates_identical_content(fake_fitz) -> None:
    registry = SourceRegistry()

    first = registry.register(_PDF_A, "a.pdf")
    second = registry.register(_PDF_A, "copy-of-a.pdf")

    assert first is second
    assert len(registry) == 1
    assert len(fake_fitz.opened) == 1


def test_distinct_content_gets_distinct_identity(fake_fitz) -> None:
    registry = SourceRegistry()

    first = registry.register(_PDF_A, "same.pdf")
    second = registry.register(_PDF_B, "same.pdf")

    assert first.identity != second.identity
    assert [source.identity for source in registry.sources()] == [first.identity, second.identity]


def test_register_rejects_non_pdf(fake_fitz) -> None:
    registry = SourceRegistry()

    with pytest.raises(UnsupportedFileTypeError, match="notes.txt"):
        registry.register(b"just some text", "notes.txt")
    assert fake_fitz.opened == []


def test_register_wraps_parse_failures(fake_fitz) -> None:
    fake_fitz.error = RuntimeError("cannot open broken document")
    registry = SourceRegistry()

    with pytest.raises(CorruptDocumentError, match="broken.pdf"):
        registry.register(_PDF_A, "broken.pdf")
    assert len(registry) == 0


def test_register_rejects_encrypted_document(fake_fitz) -> None:
    fake_fitz.needs_pass = True
    registry = SourceRegistry()

    with pytest.raises(CorruptDocumentError, match="password protected"):
        registry.register(_PDF_A, "secret.pdf")
    assert fake_fitz.opened[0].closed


def test_register_rejects_empty_document(fake_fitz) -> None:
    fake_fitz.page_count = 0
    registry = SourceRegistry()

    with pytest.raises(CorruptDocumentError, match="no pages"):
        registry.register(_PDF_A, "empty.pdf")


def test_resolve_unknown_source_raises() -> None:
    with pytest.raises(DanglingPageRefError):
        SourceRegistry().resolve("missing")


def test_release_to_zero_frees_source(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")

    assert registry.acquire(source.identity, 2) == 2
    assert registry.release(source.identity) == 1
    assert source.identity in registry

    assert registry.release(source.identity) == 0
    assert source.identity not in registry
    assert fake_fitz.opened[0].closed
    with pytest.raises(DanglingPageRefError):
        registry.resolve(source.identity)


def test_acquire_unknown_source_raises() -> None:
    with pytest.raises(DanglingPageRefError):
        SourceRegistry().acquire("missing")


def test_pinned_holds_sources_alive(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")
    registry.acquire(source.identity)

    with registry.pinned([source.identity, source.identity]) as pinned:
        assert pinned == [source]
        assert registry.refcount(source.identity) == 1
        assert registry.release(source.identity) == 0
        assert source.identity in registry
        assert registry.resolve(source.identity) is source

    assert source.identity not in registry


def test_pinned_releases_on_error(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")
    registry.acquire(source.identity)

    with pytest.raises(DanglingPageRefError), registry.pinned([source.identity, "missing"]):
        pass

    assert registry.refcount(source.identity) == 1


def test_prune_frees_unreferenced_sources(fake_fitz) -> None:
    registry = SourceRegistry()
    kept = registry.register(_PDF_A, "a.pdf")
    dropped = registry.register(_PDF_B, "b.pdf")
    registry.acquire(kept.identity)

    assert registry.prune() == [dropped.identity]
    assert [source.identity for source in registry.sources()] == [kept.identity]


def test_close_frees_everything(fake_fitz) -> None:
    registry = SourceRegistry()
    registry.register(_PDF_A, "a.pdf")
    registry.register(_PDF_B, "b.pdf")

    registry.close()

    assert len(registry) == 0
    assert all(doc.closed for doc in fake_fitz.opened)


def test_release_more_than_held_raises(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")
    registry.acquire(source.identity)

    with pytest.raises(ReferenceCountError, match="only 1 held"):
        registry.release(source.identity, 2)

    assert registry.refcount(source.identity) == 1
    assert source.identity in registry


def test_release_of_unreferenced_source_raises(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")

    with pytest.raises(ReferenceCountError):
        registry.release(source.identity)

    assert source.identity in registry
    assert not fake_fitz.opened[0].closed


def test_pinning_does_not_free_sources_without_page_references(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")

    with registry.pinned([source.identity]):
        assert registry.refcount(source.identity) == 0

    assert source.identity in registry
    assert registry.resolve(source.identity) is source
    assert not fake_fitz.opened[0].closed


def test_prune_skips_pinned_sources(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")

    with registry.pinned([source.identity]):
        assert registry.prune() == []

    assert registry.prune() == [source.identity]


def test_reacquire_while_pinned_keeps_source_after_unpin(fake_fitz) -> None:
    registry = SourceRegistry()
    source = registry.register(_PDF_A, "a.pdf")
    registry.acquire(source.identity)

    with registry.pinned([source.identity]):
        registry.release(source.identity)
        registry.acquire(source.identity)

    assert source.identity in registry
    assert registry.refcount(source.identity) == 1
