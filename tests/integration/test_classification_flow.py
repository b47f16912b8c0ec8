from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from pagecraft.raster import RasterPool, rasterize_page
from pagecraft.session import Workspace
from pagecraft.settings import Settings


def test_rasterize_page_renders_rgb_buffer(make_pdf) -> None:
    raster = rasterize_page(make_pdf(1, size=(200.0, 100.0)), 0, 0.5)

    assert (raster.width, raster.height, raster.channels) == (100, 50, 3)
    assert len(raster.samples) == 100 * 50 * 3


def test_dark_and_light_pages_are_told_apart(make_pdf) -> None:
    with ThreadPoolExecutor(max_workers=1) as executor, Workspace(settings=Settings()) as workspace:
        pool = RasterPool(settings=workspace.settings, max_workers=1, executor=executor)
        light = workspace.upload_file("light.pdf", make_pdf(1, label="light")).sources[0]
        dark = workspace.upload_file("dark.pdf", make_pdf(2, label="dark", fill=(0, 0, 0))).sources[0]

        light_results = pool.classify(light)
        dark_results = pool.classify(dark)

    assert not light_results[0].is_dark
    assert all(result.is_dark for result in dark_results.values())
    assert all(result.confidence > 0.9 for result in dark_results.values())


def test_workspace_classify_uses_process_pool(make_pdf) -> None:
    progress: list[int] = []

    with Workspace(settings=Settings(raster_workers=2)) as workspace:
        source = workspace.upload_file("dark.pdf", make_pdf(3, label="dark", fill=(0.05, 0.05, 0.05))).sources[0]
        results = workspace.classify(source.identity, on_progress=lambda done, total, index: progress.append(done))

    assert sorted(results) == [0, 1, 2]
    assert all(result.is_dark for result in results.values())
    assert progress == [1, 2, 3]
