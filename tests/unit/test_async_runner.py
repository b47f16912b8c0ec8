from __future__ import annotations

import asyncio

import pytest
import structlog

from pagecraft.async_runner import run_async
from pagecraft.exceptions import AsyncExecutionError, RasterError
from pagecraft.logging import LogContext


async def _page_count(value: int) -> int:
    await asyncio.sleep(0)
    return value


async def _broken_page() -> int:
    await asyncio.sleep(0)
    raise RasterError(message="Failed to rasterize page 2 of 'doc.pdf'")


async def _unexpected() -> int:
    await asyncio.sleep(0)
    raise ValueError("nope")


async def _bound_source_id() -> object:
    await asyncio.sleep(0)
    return structlog.contextvars.get_contextvars().get("source_id")


def test_run_async_from_sync_context() -> None:
    assert run_async(_page_count(7)) == 7


def test_run_async_with_running_loop() -> None:
    async def _nested() -> int:
        await asyncio.sleep(0)
        return run_async(_page_count(11))

    assert asyncio.run(_nested()) == 11


def test_raster_errors_surface_unchanged_inside_running_loop() -> None:
    async def _nested() -> int:
        return run_async(_broken_page())

    with pytest.raises(RasterError, match="page 2 of 'doc.pdf'"):
        asyncio.run(_nested())


def test_raster_errors_surface_unchanged_from_sync_context() -> None:
    with pytest.raises(RasterError):
        run_async(_broken_page())


def test_foreign_errors_are_wrapped_inside_running_loop() -> None:
    async def _nested() -> int:
        return run_async(_unexpected())

    with pytest.raises(AsyncExecutionError, match="nope"):
        asyncio.run(_nested())


def test_bound_log_fields_reach_the_helper_thread() -> None:
    async def _nested() -> object:
        with LogContext(source_id="abc123"):
            return run_async(_bound_source_id())

    assert asyncio.run(_nested()) == "abc123"
