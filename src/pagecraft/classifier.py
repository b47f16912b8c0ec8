"""Dark-background page detection."""

from __future__ import annotations

from pagecraft.typing.models import ClassificationResult, ClassifierThresholds, PageRaster

_DEFAULT_THRESHOLDS = ClassifierThresholds()

_RED_WEIGHT = 0.299
_GREEN_WEIGHT = 0.587
_BLUE_WEIGHT = 0.114


def pixel_luma(red: int, green: int, blue: int) -> float:
    """Return perceptual brightness of one RGB pixel.

    Args:
        red (int): Red channel (0-255).
        green (int): Green channel (0-255).
        blue (int): Blue channel (0-255).

    Returns:
        float: Luma in the 0-255 range.
    """
    return _RED_WEIGHT * red + _GREEN_WEIGHT * green + _BLUE_WEIGHT * blue


def classify_background(
    raster: PageRaster,
    thresholds: ClassifierThresholds = _DEFAULT_THRESHOLDS,
) -> ClassificationResult:
    """Decide whether a page has a dark background.

    A text-dense light page can reach a high dark ratio from glyph ink alone,
    so the light ratio and mean luma must also be low.

    Args:
        raster (PageRaster): Low-resolution page raster (gray, RGB or RGBA).
        thresholds (ClassifierThresholds): Decision thresholds.

    Returns:
        ClassificationResult: Decision, confidence and the measured ratios.
    """
    total_px = raster.width * raster.height
    if total_px == 0:
        return ClassificationResult(is_dark=False, confidence=0.0)

    dark_px, light_px, luma_sum = _accumulate_luma(raster, thresholds)
    dark_ratio = dark_px / total_px
    light_ratio = light_px / total_px
    mean_luma = luma_sum / total_px

    is_dark = (
        dark_ratio > thresholds.min_dark_ratio
        and light_ratio < thresholds.max_light_ratio
        and mean_luma < thresholds.max_mean_luma
    )
    confidence = 0.0
    if is_dark:
        span = 1.0 - thresholds.min_dark_ratio
        confidence = min(max((dark_ratio - thresholds.min_dark_ratio) / span, 0.0), 1.0)

    return ClassificationResult(
        is_dark=is_dark,
        confidence=confidence,
        dark_ratio=dark_ratio,
        light_ratio=light_ratio,
        mean_luma=mean_luma,
    )


def _accumulate_luma(raster: PageRaster, thresholds: ClassifierThresholds) -> tuple[int, int, float]:
    """Count dark and light pixels and sum luma over the raster.

    Args:
        raster (PageRaster): Page raster.
        thresholds (ClassifierThresholds): Luma cut-offs.

    Returns:
        tuple[int, int, float]: Dark pixel count, light pixel count, luma sum.
    """
    view = memoryview(raster.samples)
    stride = raster.channels
    end = raster.width * raster.height * stride
    dark_px = 0
    light_px = 0
    luma_sum = 0.0
    for idx in range(0, end, stride):
        if stride < 3:
            luma = float(view[idx])
        else:
            luma = pixel_luma(view[idx], view[idx + 1], view[idx + 2])
        luma_sum += luma
        if luma < thresholds.dark_luma:
            dark_px += 1
        elif luma > thresholds.light_luma:
            light_px += 1
    return dark_px, light_px, luma_sum
