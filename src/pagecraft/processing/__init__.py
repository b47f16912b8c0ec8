"""Output page processing helpers."""

from pagecraft.processing.transforms import (
    PreparedImage,
    apply_transforms,
    format_page_number,
    invert_page,
    page_number_origin,
    prepare_watermark_image,
)

__all__ = [
    "PreparedImage",
    "apply_transforms",
    "format_page_number",
    "invert_page",
    "page_number_origin",
    "prepare_watermark_image",
]
