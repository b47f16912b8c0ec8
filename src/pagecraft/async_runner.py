"""Run the raster pool coroutines from synchronous callers."""

from __future__ import annotations

import asyncio
import contextvars
import threading
from queue import Queue
from typing import TYPE_CHECKING, Any

from pagecraft.exceptions import AsyncExecutionError, PackageError

if TYPE_CHECKING:
    from collections.abc import Coroutine


def _run_in_background_thread[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on a helper thread with its own event loop.

    The caller's context variables, including bound log fields, are copied
    into the helper thread.

    Args:
        coro: The coroutine to run.

    Raises:
        PackageError: Re-raised unchanged, e.g. a `RasterError` from a worker.
        AsyncExecutionError: If the coroutine fails with any other exception.

    Returns:
        The result of the coroutine.
    """
    output: Queue[T | BaseException] = Queue(maxsize=1)
    context = contextvars.copy_context()

    def _runner() -> None:
        try:
            output.put(context.run(asyncio.run, coro))
        except BaseException as exc:
            output.put(exc)

    thread = threading.Thread(target=_runner, name="pagecraft-async", daemon=True)
    thread.start()
    thread.join()

    result = output.get()
    if isinstance(result, PackageError):
        raise result
    if isinstance(result, BaseException):
        raise AsyncExecutionError(result=result) from result
    return result


def run_async[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine such as `RasterPool.arasterize` to completion.

    From plain synchronous code the coroutine runs on a fresh event loop.
    When a loop is already running in this thread (an async web handler, a
    notebook) it runs on a helper thread so the caller's loop is not re-entered.
    Package errors surface the same way in both cases.

    Args:
        coro: The coroutine to run.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    return _run_in_background_thread(coro)
