"""Cooperative waits that honour an optional cancellation token.

The token is a plain ``asyncio.Event``: setting it aborts whichever wait is
in progress. Native task cancellation keeps working as usual on top.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class OperationCancelled(Exception):
    """Raised when the cancellation token is set during a wait."""


async def sleep_or_cancel(seconds: float, cancel: Optional[asyncio.Event] = None) -> None:
    """Suspend for ``seconds`` without blocking the event loop."""
    if cancel is None:
        await asyncio.sleep(seconds)
        return
    if cancel.is_set():
        raise OperationCancelled()
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise OperationCancelled()


async def await_or_cancel(awaitable: Awaitable[T], cancel: Optional[asyncio.Event] = None) -> T:
    """Await ``awaitable`` unless the token fires first; then cancel it."""
    if cancel is None:
        return await awaitable
    task = asyncio.ensure_future(awaitable)
    if cancel.is_set():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelled()
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
    if task in done:
        return task.result()
    await asyncio.gather(task, return_exceptions=True)
    raise OperationCancelled()
