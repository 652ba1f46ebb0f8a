"""Utility helpers for running blocking functions in the async event loop.

Source documents are read from disk through these helpers so file I/O never
blocks the event loop while scoring calls are in flight.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

import anyio

T = TypeVar("T")


async def run_in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread and await the result.

    anyio.to_thread.run_sync only forwards *positional* arguments, therefore
    we capture kwargs in a closure to preserve full signature compatibility.
    """

    if kwargs:
        return await anyio.to_thread.run_sync(lambda: func(*args, **kwargs))
    return await anyio.to_thread.run_sync(func, *args)
