"""Page rasterization worker pool."""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import TYPE_CHECKING

import fitz

from pagecraft.async_runner import run_async
from pagecraft.classifier import classify_background
from pagecraft.exceptions import RasterError
from pagecraft.logging import LogContext, get_logger
from pagecraft.settings import Settings, get_settings
from pagecraft.typing.models import ClassificationResult, ClassifierThresholds, PageRaster

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pagecraft.typing.models import SourceDocument
    from pagecraft.typing.protocol import PageRasterizer, ProgressCallback

logger = get_logger(__name__)


def rasterize_page(data: bytes, page_index: int, zoom: float) -> PageRaster:
    """Render one page of a PDF payload into an RGB buffer.

    Runs inside worker processes: the document is opened from `data` so no
    PyMuPDF object crosses a process boundary.

    Args:
        data (bytes): Source PDF bytes.
        page_index (int): 0-based page index.
        zoom (float): Scale factor relative to 72 dpi.

    Returns:
        PageRaster: RGB pixel buffer without alpha.
    """
    with fitz.open(stream=data, filetype="pdf") as doc:
        page = doc.load_page(page_index)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), colorspace=fitz.csRGB, alpha=False)
        return PageRaster(
            page_index=page_index,
            width=pix.width,
            height=pix.height,
            channels=pix.n,
            samples=bytes(pix.samples),
        )


class RasterPool:
    """Bounded pool of workers draining a queue of page indices.

    Pages are independent and read-only with respect to their source, so they
    are rendered in parallel; each finished page is reported through an
    optional progress callback.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        max_workers: int | None = None,
        zoom: float | None = None,
        rasterizer: PageRasterizer = rasterize_page,
        executor: Executor | None = None,
    ) -> None:
        config = settings or get_settings()
        self.max_workers = max(max_workers or config.raster_workers, 1)
        self.zoom = zoom or config.raster_zoom
        self._rasterizer = rasterizer
        self._executor = executor

    async def arasterize(
        self,
        source: SourceDocument,
        page_indices: Iterable[int] | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[PageRaster]:
        """Rasterize pages of a source concurrently.

        Args:
            source (SourceDocument): Source to render.
            page_indices (Iterable[int] | None): 0-based pages; all pages when omitted.
            on_progress (ProgressCallback | None): Called once per finished page.

        Raises:
            RasterError: If any page fails to render.

        Returns:
            list[PageRaster]: Rasters in the requested page order.
        """
        indices = list(range(source.page_count)) if page_indices is None else list(page_indices)
        if not indices:
            return []

        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in dict.fromkeys(indices):
            queue.put_nowait(index)
        total = queue.qsize()

        loop = asyncio.get_running_loop()
        executor = self._executor or ProcessPoolExecutor(max_workers=self.max_workers)
        results: dict[int, PageRaster] = {}

        async def _worker() -> None:
            while True:
                try:
                    index = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    raster = await loop.run_in_executor(
                        executor,
                        self._rasterizer,
                        source.data,
                        index,
                        self.zoom,
                    )
                except Exception as exc:
                    raise RasterError(
                        message=f"Failed to rasterize page {index + 1} of '{source.filename}'",
                    ) from exc
                results[index] = raster
                if on_progress is not None:
                    on_progress(len(results), total, index)

        with LogContext(source_id=source.identity):
            workers = [asyncio.create_task(_worker()) for _ in range(min(self.max_workers, total))]
            try:
                await asyncio.gather(*workers)
            finally:
                # A failed page stops the remaining workers before the executor goes away.
                for task in workers:
                    task.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
                if self._executor is None:
                    executor.shutdown(wait=True, cancel_futures=True)

            logger.info("Pages rasterized", extra={"pages": total, "workers": self.max_workers})
        return [results[index] for index in indices]

    def rasterize(
        self,
        source: SourceDocument,
        page_indices: Iterable[int] | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> list[PageRaster]:
        """Synchronous wrapper around `arasterize`."""
        return run_async(self.arasterize(source, page_indices, on_progress=on_progress))

    async def aclassify(
        self,
        source: SourceDocument,
        page_indices: Iterable[int] | None = None,
        *,
        thresholds: ClassifierThresholds | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[int, ClassificationResult]:
        """Classify the background of each page of a source.

        Args:
            source (SourceDocument): Source to analyze.
            page_indices (Iterable[int] | None): 0-based pages; all pages when omitted.
            thresholds (ClassifierThresholds | None): Override decision thresholds.
            on_progress (ProgressCallback | None): Called once per rasterized page.

        Returns:
            dict[int, ClassificationResult]: Result per 0-based page index.
        """
        rasters = await self.arasterize(source, page_indices, on_progress=on_progress)
        if thresholds is None:
            return {raster.page_index: classify_background(raster) for raster in rasters}
        return {raster.page_index: classify_background(raster, thresholds) for raster in rasters}

    def classify(
        self,
        source: SourceDocument,
        page_indices: Iterable[int] | None = None,
        *,
        thresholds: ClassifierThresholds | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[int, ClassificationResult]:
        """Synchronous wrapper around `aclassify`."""
        return run_async(
            self.aclassify(source, page_indices, thresholds=thresholds, on_progress=on_progress),
        )
