"""
Concurrent per-coin lookups.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_or_abort(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """
    Run awaitables concurrently and return their results in input order.

    The first failure cancels every lookup still running and is re-raised
    as the original exception object, not wrapped in an ExceptionGroup.
    """
    tasks: list[asyncio.Task[T]] = []
    try:
        async with asyncio.TaskGroup() as tg:
            for aw in awaitables:
                tasks.append(tg.create_task(_await(aw)))
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None
    return [task.result() for task in tasks]


async def _await(aw: Awaitable[T]) -> T:
    return await aw
