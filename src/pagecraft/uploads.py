"""Batch upload ingestion with per-file failure isolation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagecraft.exceptions import SourceError
from pagecraft.logging import get_logger
from pagecraft.typing.models import UploadFailure, UploadReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pagecraft.registry import SourceRegistry
    from pagecraft.sequence import PageSequence
    from pagecraft.typing.models import UploadFile

logger = get_logger(__name__)


def ingest_uploads(
    registry: SourceRegistry,
    sequence: PageSequence,
    uploads: Iterable[UploadFile],
) -> UploadReport:
    """Register uploaded files and append all their pages to the sequence.

    A file that is not a PDF or cannot be parsed is reported and skipped;
    the rest of the batch continues.

    Args:
        registry (SourceRegistry): Source registry.
        sequence (PageSequence): Working page sequence.
        uploads (Iterable[UploadFile]): Uploaded files, in drop order.

    Returns:
        UploadReport: Accepted sources, appended pages and per-file failures.
    """
    report = UploadReport()
    for upload in uploads:
        try:
            source = registry.register(upload.data, upload.filename, upload.last_modified)
        except SourceError as exc:
            logger.warning(
                "Upload rejected",
                extra={"filename": upload.filename, "error_type": type(exc).__name__, "reason": str(exc)},
            )
            report.failures.append(
                UploadFailure(filename=upload.filename, reason=str(exc), error_type=type(exc).__name__),
            )
            continue

        report.sources.append(source)
        report.page_refs.extend(sequence.append_pages(source.identity))

    logger.info(
        "Uploads ingested",
        extra={
            "accepted": len(report.sources),
            "failed": len(report.failures),
            "pages": len(report.page_refs),
        },
    )
    return report
