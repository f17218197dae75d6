"""Concurrent map-then-join over independent async operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Await every awaitable concurrently and return results in order.

    If one fails, the others are cancelled and waited for before the error
    is raised, so nothing is left running once this returns.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def gather_map(func: Callable[[T], Awaitable[R]], items: Iterable[T]) -> list[R]:
    """Run ``func`` on every item concurrently and wait for all of them.

    Results keep the order of ``items``. There is no limit on in-flight calls.
    The first exception cancels the remaining calls and propagates.
    """
    return await gather_all(*(func(item) for item in items))
