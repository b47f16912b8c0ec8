"""Per-page visual transforms applied to the assembled document."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

import fitz
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from pagecraft.logging import get_logger
from pagecraft.typing.enums import NumberPosition
from pagecraft.typing.models import (
    ImageWatermarkTransform,
    InvertTransform,
    PageNumberTransform,
    TextWatermarkTransform,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pagecraft.typing.models import Transform

logger = get_logger(__name__)

_NUMBER_FONT = "helv"
_WATERMARK_FONT = "hebo"
_BLACK = (0.0, 0.0, 0.0)
_INVERT_GSTATE = "PCInvert"


class PreparedImage(BaseModel):
    """Watermark image with opacity and rotation already baked in."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    png: bytes = Field(repr=False)
    width: float = Field(gt=0.0)
    height: float = Field(gt=0.0)


def format_page_number(template: str, page_number: int, total: int) -> str:
    """Substitute `{p}` and `{n}` in a page number template.

    Only the first occurrence of each token is replaced; anything else,
    including malformed tokens, is kept literally.

    Args:
        template (str): Format such as `page {p} of {n}`.
        page_number (int): 1-based page number.
        total (int): Total number of pages.

    Returns:
        str: Rendered label.
    """
    return template.replace("{p}", str(page_number), 1).replace("{n}", str(total), 1)


def page_number_origin(
    position: NumberPosition,
    *,
    page_width: float,
    page_height: float,
    text_width: float,
    font_size: float,
    margin: float,
) -> tuple[float, float]:
    """Return the text baseline origin for a page number, top-left coordinates.

    Args:
        position (NumberPosition): Anchor.
        page_width (float): Page width in points.
        page_height (float): Page height in points.
        text_width (float): Rendered label width.
        font_size (float): Font size in points.
        margin (float): Distance from the page edges.

    Returns:
        tuple[float, float]: Baseline start point.
    """
    y = margin + font_size if position.is_top else page_height - margin

    horizontal = position.horizontal
    if horizontal == "left":
        x = margin
    elif horizontal == "center":
        x = page_width / 2 - text_width / 2
    else:
        x = page_width - margin - text_width
    return x, y


def _indirect_xref(kind: str, value: str) -> int | None:
    """Return the object number of an `xref_get_key` result that is a reference."""
    if kind != "xref":
        return None
    return int(value.split()[0])


def _register_invert_gstate(doc: Any, page: Any) -> None:
    """Add the difference-blend graphics state to the page resources.

    `xref_set_key` cannot create a key path through an indirect object, so
    indirect `/Resources` and `/ExtGState` dictionaries are addressed directly.

    Args:
        doc (fitz.Document): Document owning the page.
        page (fitz.Page): Target page.
    """
    xref, prefix = page.xref, "Resources/"
    resources_xref = _indirect_xref(*doc.xref_get_key(xref, "Resources"))
    if resources_xref is not None:
        xref, prefix = resources_xref, ""

    gstate_xref = _indirect_xref(*doc.xref_get_key(xref, f"{prefix}ExtGState"))
    if gstate_xref is not None:
        xref, prefix = gstate_xref, ""
    else:
        prefix = f"{prefix}ExtGState/"

    doc.xref_set_key(xref, f"{prefix}{_INVERT_GSTATE}", "<</Type/ExtGState/BM/Difference/ca 1/CA 1>>")


def _media_box(doc: Any, page: Any) -> tuple[float, float, float, float]:
    """Return the page `/MediaBox` in PDF user space as `(x, y, width, height)`."""
    kind, value = doc.xref_get_key(page.xref, "MediaBox")
    if kind == "array":
        x0, y0, x1, y1 = (float(part) for part in value.strip("[]").split())
    else:
        x0, y0, x1, y1 = page.mediabox
    return min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0)


def invert_page(page: Any) -> None:
    """Invert a page by painting a white rectangle in difference blend mode.

    The rectangle lives in its own content stream appended after the
    existing, `q`/`Q` wrapped, page contents.

    Args:
        page (fitz.Page): Page to invert.
    """
    doc = page.parent
    page.wrap_contents()
    _register_invert_gstate(doc, page)

    x, y, width, height = _media_box(doc, page)
    stream = f"q /{_INVERT_GSTATE} gs 1 1 1 rg {x:g} {y:g} {width:g} {height:g} re f Q\n"

    overlay_xref = doc.get_new_xref()
    doc.update_object(overlay_xref, "<<>>")
    doc.update_stream(overlay_xref, stream.encode("ascii"))

    contents = [*page.get_contents(), overlay_xref]
    doc.xref_set_key(page.xref, "Contents", "[" + " ".join(f"{xref} 0 R" for xref in contents) + "]")


def stamp_page_number(page: Any, transform: PageNumberTransform, page_number: int, total: int) -> None:
    """Draw a formatted page number.

    Args:
        page (fitz.Page): Target page.
        transform (PageNumberTransform): Numbering configuration.
        page_number (int): 1-based page number.
        total (int): Total number of pages.
    """
    label = format_page_number(transform.format, page_number, total)
    text_width = fitz.get_text_length(label, fontname=_NUMBER_FONT, fontsize=transform.font_size_pt)
    origin = page_number_origin(
        transform.position,
        page_width=page.rect.width,
        page_height=page.rect.height,
        text_width=text_width,
        font_size=transform.font_size_pt,
        margin=transform.margin_pt,
    )
    page.insert_text(
        fitz.Point(*origin),
        label,
        fontsize=transform.font_size_pt,
        fontname=_NUMBER_FONT,
        color=_BLACK,
    )


def stamp_text_watermark(page: Any, transform: TextWatermarkTransform) -> None:
    """Draw centered translucent text rotated about the page center.

    Args:
        page (fitz.Page): Target page.
        transform (TextWatermarkTransform): Watermark configuration.
    """
    size = transform.font_size_pt
    text_width = fitz.get_text_length(transform.text, fontname=_WATERMARK_FONT, fontsize=size)
    center = fitz.Point(page.rect.width / 2, page.rect.height / 2)
    origin = fitz.Point(center.x - text_width / 2, center.y + size / 2)
    # The y axis points down in PyMuPDF space, so a counterclockwise angle is negated.
    page.insert_text(
        origin,
        transform.text,
        fontsize=size,
        fontname=_WATERMARK_FONT,
        color=_BLACK,
        fill_opacity=transform.opacity,
        stroke_opacity=transform.opacity,
        morph=(center, fitz.Matrix(-transform.rotation_degrees)),
    )


def prepare_watermark_image(transform: ImageWatermarkTransform) -> PreparedImage:
    """Bake opacity and rotation into a PNG ready to be placed.

    Args:
        transform (ImageWatermarkTransform): Watermark configuration.

    Returns:
        PreparedImage: PNG payload and its placed size in points.
    """
    with Image.open(io.BytesIO(transform.image)) as source:
        rgba = source.convert("RGBA")

    alpha = rgba.getchannel("A").point(lambda value: round(value * transform.opacity))
    rgba.putalpha(alpha)
    rotated = rgba.rotate(transform.rotation_degrees, expand=True, resample=Image.Resampling.BICUBIC)

    buffer = io.BytesIO()
    rotated.save(buffer, format="PNG")
    return PreparedImage(
        png=buffer.getvalue(),
        width=rotated.width * transform.scale,
        height=rotated.height * transform.scale,
    )


def stamp_image_watermark(page: Any, image: PreparedImage) -> None:
    """Place a prepared watermark image at the page center.

    Args:
        page (fitz.Page): Target page.
        image (PreparedImage): Prepared watermark.
    """
    x0 = page.rect.width / 2 - image.width / 2
    y0 = page.rect.height / 2 - image.height / 2
    rect = fitz.Rect(x0, y0, x0 + image.width, y0 + image.height)
    page.insert_image(rect, stream=image.png, keep_proportion=True, overlay=True)


def apply_transforms(doc: Any, transforms: Sequence[Transform]) -> None:
    """Apply transforms, in order, to every page of a document.

    Args:
        doc (fitz.Document): Assembled output document.
        transforms (Sequence[Transform]): Ordered transforms.
    """
    if not transforms:
        return

    prepared: dict[int, PreparedImage] = {}
    for position, transform in enumerate(transforms):
        if isinstance(transform, ImageWatermarkTransform):
            prepared[position] = prepare_watermark_image(transform)

    total = doc.page_count
    for index in range(total):
        page_number = index + 1
        for position, transform in enumerate(transforms):
            page = doc.load_page(index)
            if isinstance(transform, InvertTransform):
                if transform.applies_to(page_number):
                    invert_page(page)
            elif isinstance(transform, PageNumberTransform):
                stamp_page_number(page, transform, page_number, total)
            elif isinstance(transform, TextWatermarkTransform):
                stamp_text_watermark(page, transform)
            else:
                stamp_image_watermark(page, prepared[position])

    logger.debug("Transforms applied", extra={"pages": total, "transforms": [t.kind.value for t in transforms]})
