"""Attach settlement observers to a pending operation."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from src.utils.result import Err, Ok, Result

PendingOperation = Union["asyncio.Future[Any]", Awaitable[Any]]

SettlementCallback = Callable[[int, Result[Any, BaseException]], None]


def as_future(
    operation: PendingOperation,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> asyncio.Future:
    """
    Normalize a pending operation to an asyncio future.

    Futures and tasks pass through unchanged. Coroutines and other
    awaitables are scheduled with ``asyncio.ensure_future``, which needs a
    running loop unless ``loop`` is given.

    Args:
        operation: Future, task, coroutine or awaitable
        loop: Event loop used to schedule non-future awaitables

    Returns:
        Future that settles with the operation's outcome

    Raises:
        TypeError: If operation is not awaitable
    """
    if asyncio.isfuture(operation):
        return operation

    if not inspect.isawaitable(operation):
        raise TypeError(
            f"Expected a future or awaitable, got {type(operation).__name__}"
        )

    return asyncio.ensure_future(operation, loop=loop)


def outcome_of(future: asyncio.Future) -> Result[Any, BaseException]:
    """
    Read a settled future's outcome without raising.

    A cancelled future is reported as ``Err(CancelledError())``.
    """
    if future.cancelled():
        return Err(asyncio.CancelledError())

    # Retrieving the exception keeps the loop from logging it as unhandled
    exc = future.exception()
    if exc is not None:
        return Err(exc)
    return Ok(future.result())


def attach(
    future: asyncio.Future,
    callback: SettlementCallback,
    generation: int,
) -> None:
    """
    Register ``callback(generation, outcome)`` to run once ``future`` settles.

    The loop schedules done callbacks with ``call_soon``, so the callback
    never runs inside this call even when the future is already done.
    """

    def _on_done(done: asyncio.Future) -> None:
        callback(generation, outcome_of(done))

    future.add_done_callback(_on_done)
