from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from pagecraft.exceptions import SettingsError
from pagecraft.settings import Settings, get_settings

if TYPE_CHECKING:
    from pathlib import Path


def test_settings_load_from_env_file(tmp_path: Path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_payload = (
        "LOG_LEVEL=DEBUG\n"
        "LOG_JSON=false\n"
        "RASTER_WORKERS=6\n"
        "RASTER_ZOOM=0.25\n"
        "DEFAULT_MARGIN_PT=12\n"
    )
    env_file.write_text(env_payload, encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.log_level == "DEBUG"
    assert settings.log_json is False
    assert settings.raster_workers == 6
    assert settings.raster_zoom == 0.25
    assert settings.default_margin_pt == 12


def test_settings_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = Settings()

    assert settings.raster_workers == 4
    assert settings.raster_zoom == 0.5
    assert settings.default_margin_pt == 18.0
    assert settings.output_garbage_level == 3


def test_settings_reject_zero_workers(monkeypatch) -> None:
    monkeypatch.setenv("RASTER_WORKERS", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_uses_environment(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("RASTER_WORKERS", "2")

    settings = get_settings()
    assert settings.raster_workers == 2

    get_settings.cache_clear()


def test_get_settings_wraps_invalid_values(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("RASTER_ZOOM", "9")

    with pytest.raises(SettingsError, match="RASTER_ZOOM"):
        get_settings()

    get_settings.cache_clear()
