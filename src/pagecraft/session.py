"""Editing session facade used by front ends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from pagecraft.assembler import AssemblyPipeline
from pagecraft.raster import RasterPool
from pagecraft.registry import SourceRegistry
from pagecraft.sequence import PageSequence
from pagecraft.settings import Settings, get_settings
from pagecraft.typing.models import LayoutSpec, UploadFile
from pagecraft.uploads import ingest_uploads

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from pagecraft.typing.models import ClassificationResult, PageRef, Transform, UploadReport
    from pagecraft.typing.protocol import ProgressCallback


class Workspace:
    """Sources, page order and export for one user session.

    Front ends translate gestures into these calls: drops become `upload`,
    delete buttons `remove`, drag ends `move_before`, and the download button
    `export`.
    """

    def __init__(self, *, settings: Settings | None = None, raster_pool: RasterPool | None = None) -> None:
        self.settings = settings or get_settings()
        self.registry = SourceRegistry()
        self.sequence = PageSequence(self.registry)
        self.last_pipeline: AssemblyPipeline | None = None
        self._raster_pool = raster_pool

    @property
    def pages(self) -> list[PageRef]:
        """Return the current page order."""
        return self.sequence.to_ordered_refs()

    def upload(self, uploads: Iterable[UploadFile]) -> UploadReport:
        """Add every page of the uploaded files to the end of the sequence."""
        return ingest_uploads(self.registry, self.sequence, uploads)

    def upload_file(self, filename: str, data: bytes, last_modified: float | None = None) -> UploadReport:
        """Add a single file; see `upload`."""
        return self.upload([UploadFile(filename=filename, data=data, last_modified=last_modified)])

    def remove(self, stable_id: UUID) -> PageRef:
        """Delete one page from the sequence."""
        return self.sequence.remove(stable_id)

    def move(self, stable_id: UUID, new_position: int) -> None:
        """Move one page to a new position."""
        self.sequence.move(stable_id, new_position)

    def move_before(self, stable_id: UUID, target_id: UUID) -> None:
        """Drop one page onto the slot of another."""
        self.sequence.move_before(stable_id, target_id)

    def export(self, spec: LayoutSpec | None = None, transforms: Sequence[Transform] = ()) -> bytes:
        """Assemble the current sequence.

        The sequence is snapshotted first, so edits made while the export
        runs do not reach it.

        Args:
            spec (LayoutSpec | None): Sheet layout; defaults use the configured margin.
            transforms (Sequence[Transform]): Per-page transforms.

        Returns:
            bytes: Serialized PDF.
        """
        snapshot = self.sequence.to_ordered_refs()
        pipeline = AssemblyPipeline(self.registry, settings=self.settings)
        self.last_pipeline = pipeline
        if spec is None:
            spec = LayoutSpec(margin_pt=self.settings.default_margin_pt)
        return pipeline.assemble(snapshot, spec, transforms)

    def classify(
        self,
        source_id: str,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> dict[int, ClassificationResult]:
        """Detect dark-background pages of one source.

        Args:
            source_id (str): Source identity.
            on_progress (ProgressCallback | None): Per-page progress hook.

        Returns:
            dict[int, ClassificationResult]: Result per 0-based page index.
        """
        if self._raster_pool is None:
            self._raster_pool = RasterPool(settings=self.settings)
        return self._raster_pool.classify(self.registry.resolve(source_id), on_progress=on_progress)

    def clear(self) -> None:
        """Remove all pages and free every source."""
        self.sequence.clear()
        self.registry.prune()

    def close(self) -> None:
        """Release all resources held by the session."""
        self.sequence.clear()
        self.registry.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()
