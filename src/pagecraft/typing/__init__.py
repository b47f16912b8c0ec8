"""Typing-centric domain modules."""

from pagecraft.typing.enums import AssemblyState, NumberPosition, Orientation, TransformKind
from pagecraft.typing.models import (
    CellRect,
    ClassificationResult,
    ClassifierThresholds,
    ImageWatermarkTransform,
    InvertTransform,
    LayoutSpec,
    PageAspect,
    PageNumberTransform,
    PageRaster,
    PageRef,
    Placement,
    Sheet,
    SourceDocument,
    TextWatermarkTransform,
    Transform,
    UploadFailure,
    UploadFile,
    UploadReport,
)
from pagecraft.typing.protocol import PageRasterizer, ProgressCallback

__all__ = [
    "AssemblyState",
    "CellRect",
    "ClassificationResult",
    "ClassifierThresholds",
    "ImageWatermarkTransform",
    "InvertTransform",
    "LayoutSpec",
    "NumberPosition",
    "Orientation",
    "PageAspect",
    "PageNumberTransform",
    "PageRaster",
    "PageRasterizer",
    "PageRef",
    "Placement",
    "ProgressCallback",
    "Sheet",
    "SourceDocument",
    "TextWatermarkTransform",
    "Transform",
    "TransformKind",
    "UploadFailure",
    "UploadFile",
    "UploadReport",
]
