"""Per-page transform configuration models."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from pagecraft.typing.enums import NumberPosition, TransformKind


class InvertTransform(BaseModel):
    """Invert page colors with a difference-blended white overlay."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal[TransformKind.INVERT] = TransformKind.INVERT
    pages: list[int] | None = Field(
        default=None,
        description="1-based output page numbers to invert; all pages when omitted.",
    )

    def applies_to(self, page_number: int) -> bool:
        """Return whether the transform targets the given output page.

        Args:
            page_number (int): 1-based output page number.

        Returns:
            bool: True when the page must be inverted.
        """
        return self.pages is None or page_number in self.pages


class PageNumberTransform(BaseModel):
    """Stamp formatted page numbers; `{p}` is the page, `{n}` the total."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal[TransformKind.PAGE_NUMBER] = TransformKind.PAGE_NUMBER
    format: str = "page {p} of {n}"
    position: NumberPosition = NumberPosition.BOTTOM_CENTER
    font_size_pt: float = Field(default=12.0, gt=0.0)
    margin_pt: float = Field(default=36.0, ge=0.0)


class TextWatermarkTransform(BaseModel):
    """Centered, rotated, translucent text watermark."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal[TransformKind.TEXT_WATERMARK] = TransformKind.TEXT_WATERMARK
    text: str = "CONFIDENTIAL"
    font_size_pt: float = Field(default=50.0, gt=0.0)
    opacity: float = Field(default=0.5, ge=0.0, le=1.0)
    rotation_degrees: float = -45.0


class ImageWatermarkTransform(BaseModel):
    """Centered, rotated, translucent image watermark (PNG or JPEG)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal[TransformKind.IMAGE_WATERMARK] = TransformKind.IMAGE_WATERMARK
    image: bytes = Field(repr=False)
    scale: float = Field(default=0.5, gt=0.0)
    opacity: float = Field(default=0.5, ge=0.0, le=1.0)
    rotation_degrees: float = -45.0


Transform = Annotated[
    InvertTransform | PageNumberTransform | TextWatermarkTransform | ImageWatermarkTransform,
    Field(discriminator="kind"),
]
