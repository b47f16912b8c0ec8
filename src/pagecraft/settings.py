"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagecraft.exceptions import SettingsError


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )

    raster_workers: int = Field(
        default=4,
        ge=1,
        validation_alias="RASTER_WORKERS",
        description="Maximum number of pages rasterized concurrently.",
    )
    raster_zoom: float = Field(
        default=0.5,
        gt=0.0,
        le=4.0,
        validation_alias="RASTER_ZOOM",
        description="Zoom factor applied when rasterizing pages for thumbnails and classification.",
    )
    default_margin_pt: float = Field(
        default=18.0,
        ge=0.0,
        validation_alias="DEFAULT_MARGIN_PT",
        description="Sheet margin in points used when none is given.",
    )
    output_garbage_level: int = Field(
        default=3,
        ge=0,
        le=4,
        validation_alias="OUTPUT_GARBAGE_LEVEL",
        description="PyMuPDF garbage collection level used when serializing output.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        raise SettingsError(exc=exc) from exc
