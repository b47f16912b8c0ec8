"""Collaborator interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pagecraft.typing.models import PageRaster


class PageRasterizer(Protocol):
    """Callable turning one page of a PDF byte stream into a pixel buffer.

    Implementations run inside worker processes, so they must be picklable
    module-level callables and must open their own document from `data`.
    """

    def __call__(self, data: bytes, page_index: int, zoom: float) -> PageRaster:
        """Rasterize one page.

        Args:
            data: Source PDF bytes.
            page_index: 0-based page index.
            zoom: Scale factor relative to 72 dpi.

        Returns:
            PageRaster: RGB pixel buffer of the page.
        """


class ProgressCallback(Protocol):
    """Per-page completion hook used for progress display."""

    def __call__(self, completed: int, total: int, page_index: int) -> None:
        """Report one finished page.

        Args:
            completed: Pages finished so far.
            total: Pages scheduled.
            page_index: 0-based index of the page that just finished.
        """
