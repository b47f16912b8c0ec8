"""Rasterization and background classification models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

DARK_LUMA_THRESHOLD = 50.0
LIGHT_LUMA_THRESHOLD = 205.0
MIN_DARK_RATIO = 0.70
MAX_LIGHT_RATIO = 0.10
MAX_MEAN_LUMA = 80.0


class ClassifierThresholds(BaseModel):
    """Empirical thresholds for dark-background detection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    dark_luma: float = Field(default=DARK_LUMA_THRESHOLD, ge=0.0, le=255.0)
    light_luma: float = Field(default=LIGHT_LUMA_THRESHOLD, ge=0.0, le=255.0)
    min_dark_ratio: float = Field(default=MIN_DARK_RATIO, ge=0.0, lt=1.0)
    max_light_ratio: float = Field(default=MAX_LIGHT_RATIO, ge=0.0, le=1.0)
    max_mean_luma: float = Field(default=MAX_MEAN_LUMA, ge=0.0, le=255.0)


class PageRaster(BaseModel):
    """Low-resolution pixel buffer of one page."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    page_index: int = Field(ge=0)
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    channels: int = Field(default=3, ge=1, le=4)
    samples: bytes = Field(repr=False)

    @model_validator(mode="after")
    def _check_buffer_size(self) -> PageRaster:
        """Ensure the sample buffer matches the declared geometry.

        Raises:
            ValueError: If the buffer is shorter than width x height x channels.

        Returns:
            PageRaster: Validated raster.
        """
        expected = self.width * self.height * self.channels
        if len(self.samples) < expected:
            message = f"Raster buffer too small: {len(self.samples)} bytes for {expected} expected"
            raise ValueError(message)
        return self


class ClassificationResult(BaseModel):
    """Dark-background decision for one page."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    is_dark: bool
    confidence: float = Field(ge=0.0, le=1.0)
    dark_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    light_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    mean_luma: float = Field(default=0.0, ge=0.0)
