"""Pytest marker auto-assignment by folder and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import fitz
import pytest

from pagecraft import logger

if TYPE_CHECKING:
    from collections.abc import Callable


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except Exception:
            logger.warning(
                f"Could not resolve path for test item {item.name!s}; skipping {marker!s} marker assignment",
            )
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


class FakeDocument:
    """Stand-in for `fitz.Document` tracking whether it was closed."""

    def __init__(self, page_count: int = 3, *, needs_pass: bool = False) -> None:
        self.page_count = page_count
        self.needs_pass = needs_pass
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeFitz:
    """Stand-in for the `fitz` module used by the source registry."""

    def __init__(self) -> None:
        self.page_count = 3
        self.needs_pass = False
        self.error: Exception | None = None
        self.opened: list[FakeDocument] = []

    def open(self, *, stream: bytes, filetype: str) -> FakeDocument:
        assert filetype == "pdf"
        assert stream
        if self.error is not None:
            raise self.error
        doc = FakeDocument(self.page_count, needs_pass=self.needs_pass)
        self.opened.append(doc)
        return doc


@pytest.fixture
def fake_fitz(monkeypatch: pytest.MonkeyPatch) -> FakeFitz:
    fake = FakeFitz()
    monkeypatch.setattr("pagecraft.registry.fitz", fake)
    return fake


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Build real PDF bytes with labelled pages.

    Each page carries the text `<label> page <n>`; `fill` paints the whole page.
    """

    def _make(
        pages: int = 3,
        *,
        label: str = "doc",
        size: tuple[float, float] = (595.0, 842.0),
        fill: tuple[float, float, float] | None = None,
    ) -> bytes:
        doc = fitz.open()
        for number in range(1, pages + 1):
            page = doc.new_page(width=size[0], height=size[1])
            if fill is not None:
                page.draw_rect(page.rect, color=fill, fill=fill)
            page.insert_text((36, 72), f"{label} page {number}", fontsize=14)
        data = doc.tobytes()
        doc.close()
        return data

    return _make
