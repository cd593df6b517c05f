"""
Smartcar Demo - Join Policies
===============================
Two ways of waiting on concurrently issued vehicle API calls.

    gather_all -> fail-fast: the first failure cancels the siblings and is
                  re-raised. Used by vehicle listing, which must be complete
                  before anything renders it.
    settle_all -> always-settle: waits for every call and returns failures as
                  values. Used by logout, which must finish no matter what.

Both return results in the order the awaitables were given.
"""

import asyncio
from typing import Any, Awaitable, Iterable


async def gather_all(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """
    Run all awaitables concurrently; abort on the first failure.

    Args:
        aws: Coroutines or futures to run.

    Returns:
        Their results, in input order.

    Raises:
        The exception of the first awaitable to fail. Every awaitable still
        pending at that point is cancelled and awaited before raising.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel(tasks)
        raise

    for task in done:
        if not task.cancelled() and task.exception() is not None:
            await _cancel(pending)
            raise task.exception()

    return [t.result() for t in tasks]


async def settle_all(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """
    Run all awaitables concurrently and wait for every one to finish.

    Args:
        aws: Coroutines or futures to run.

    Returns:
        For each awaitable, in input order, either its result or the
        exception it raised. Never raises for a member failure.
    """
    aws = list(aws)
    if not aws:
        return []
    return await asyncio.gather(*aws, return_exceptions=True)


async def _cancel(tasks) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
