"""Core domain model exports."""

from pagecraft.typing.models.classification import (
    ClassificationResult,
    ClassifierThresholds,
    PageRaster,
)
from pagecraft.typing.models.layout import CellRect, LayoutSpec, PageAspect, Placement, Sheet
from pagecraft.typing.models.source import (
    PageRef,
    SourceDocument,
    UploadFailure,
    UploadFile,
    UploadReport,
)
from pagecraft.typing.models.transforms import (
    ImageWatermarkTransform,
    InvertTransform,
    PageNumberTransform,
    TextWatermarkTransform,
    Transform,
)

__all__ = [
    "CellRect",
    "ClassificationResult",
    "ClassifierThresholds",
    "ImageWatermarkTransform",
    "InvertTransform",
    "LayoutSpec",
    "PageAspect",
    "PageNumberTransform",
    "PageRaster",
    "PageRef",
    "Placement",
    "Sheet",
    "SourceDocument",
    "TextWatermarkTransform",
    "Transform",
    "UploadFailure",
    "UploadFile",
    "UploadReport",
]
