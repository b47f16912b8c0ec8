"""Assembly orchestration: sources + layout + transforms -> output bytes."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import fitz

from pagecraft.exceptions import AssemblyError, DanglingPageRefError, PackageError, PageIndexError
from pagecraft.layout import compute_sheets, to_top_left_rect, validate_layout_spec
from pagecraft.logging import LogContext, bind_log_fields, get_logger
from pagecraft.processing.transforms import apply_transforms
from pagecraft.settings import Settings, get_settings
from pagecraft.typing.enums import AssemblyState
from pagecraft.typing.models import InvertTransform, LayoutSpec, PageAspect

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pagecraft.registry import SourceRegistry
    from pagecraft.typing.models import PageRef, SourceDocument, Transform

logger = get_logger(__name__)


class AssemblyPipeline:
    """Builds one output document from a snapshot of page references.

    States run `idle -> loading_sources -> composing_sheets ->
    applying_transforms -> serializing -> done`; any failure moves to
    `failed` and no bytes are returned.
    """

    def __init__(self, registry: SourceRegistry, *, settings: Settings | None = None) -> None:
        self._registry = registry
        self._settings = settings or get_settings()
        self._in_flight = threading.Lock()
        self.state = AssemblyState.IDLE
        self.history: list[AssemblyState] = [AssemblyState.IDLE]

    def assemble(
        self,
        refs: Iterable[PageRef],
        spec: LayoutSpec | None = None,
        transforms: Sequence[Transform] = (),
    ) -> bytes:
        """Assemble the referenced pages into a serialized PDF.

        Args:
            refs (Iterable[PageRef]): Pages in output order; copied before use.
            spec (LayoutSpec | None): Sheet layout; one page per sheet when omitted.
            transforms (Sequence[Transform]): Per-page transforms applied in order.

        Raises:
            AssemblyError: If another assembly is in flight on this pipeline, there
                are no pages, or any composition or serialization step fails.
            DanglingPageRefError: If a reference points at a released source.
            InvalidLayoutSpecError: If the layout is rejected before any work starts.

        Returns:
            bytes: The finished PDF document.
        """
        if not self._in_flight.acquire(blocking=False):
            raise AssemblyError(message="An assembly is already running on this pipeline")
        try:
            self.state = AssemblyState.IDLE
            self.history = [AssemblyState.IDLE]
            with LogContext(stage=self.state.value):
                return self._run(list(refs), spec or LayoutSpec(), list(transforms))
        finally:
            self._in_flight.release()

    def _run(self, refs: list[PageRef], spec: LayoutSpec, transforms: list[Transform]) -> bytes:
        try:
            validate_layout_spec(spec)
            if not refs:
                raise AssemblyError(message="No pages to assemble")
        except PackageError:
            self._transition(AssemblyState.FAILED)
            raise

        self._transition(AssemblyState.LOADING_SOURCES)
        output: Any = None
        try:
            with self._registry.pinned(ref.source_id for ref in refs):
                sources = self._resolve_sources(refs)

                self._transition(AssemblyState.COMPOSING_SHEETS)
                output = fitz.open()
                if spec.pages_per_sheet == 1:
                    self._copy_pages(output, refs, sources)
                else:
                    self._compose_sheets(output, refs, sources, spec)

                self._transition(AssemblyState.APPLYING_TRANSFORMS)
                if spec.invert_colors:
                    transforms = [InvertTransform(), *transforms]
                apply_transforms(output, transforms)

                self._transition(AssemblyState.SERIALIZING)
                page_count = output.page_count
                data = output.tobytes(garbage=self._settings.output_garbage_level, deflate=True)
        except (AssemblyError, DanglingPageRefError):
            self._transition(AssemblyState.FAILED)
            raise
        except Exception as exc:
            stage = self.state.value
            self._transition(AssemblyState.FAILED)
            raise AssemblyError(message="Could not assemble the output document", stage=stage) from exc
        finally:
            if output is not None:
                output.close()

        self._transition(AssemblyState.DONE)
        logger.info(
            "Assembly completed",
            extra={"input_pages": len(refs), "output_pages": page_count, "bytes": len(data)},
        )
        return data

    def _transition(self, state: AssemblyState) -> None:
        logger.debug("Assembly state changed", extra={"from": self.state.value, "to": state.value})
        self.state = state
        self.history.append(state)
        bind_log_fields(stage=state.value)

    def _resolve_sources(self, refs: list[PageRef]) -> dict[str, SourceDocument]:
        """Resolve every reference, failing on the first dangling one.

        Args:
            refs (list[PageRef]): Page references.

        Raises:
            PageIndexError: If a reference points past the end of its source.

        Returns:
            dict[str, SourceDocument]: Sources keyed by identity.
        """
        sources: dict[str, SourceDocument] = {}
        for ref in refs:
            source = sources.get(ref.source_id) or self._registry.resolve(ref.source_id)
            if ref.original_index >= source.page_count:
                raise PageIndexError(
                    source_id=ref.source_id,
                    index=ref.original_index,
                    page_count=source.page_count,
                )
            sources[ref.source_id] = source
        return sources

    @staticmethod
    def _copy_pages(output: Any, refs: list[PageRef], sources: dict[str, SourceDocument]) -> None:
        for ref in refs:
            handle = sources[ref.source_id].handle
            output.insert_pdf(handle, from_page=ref.original_index, to_page=ref.original_index)

    @staticmethod
    def _compose_sheets(
        output: Any,
        refs: list[PageRef],
        sources: dict[str, SourceDocument],
        spec: LayoutSpec,
    ) -> None:
        aspects = []
        for ref in refs:
            rect = sources[ref.source_id].handle.load_page(ref.original_index).rect
            aspects.append(PageAspect(width=rect.width, height=rect.height))

        for sheet in compute_sheets(aspects, spec, refs):
            page = output.new_page(width=sheet.width, height=sheet.height)
            for placement in sheet.placements:
                ref = placement.page_ref
                page.show_pdf_page(
                    fitz.Rect(*to_top_left_rect(placement.rect, sheet.height)),
                    sources[ref.source_id].handle,
                    ref.original_index,
                )
