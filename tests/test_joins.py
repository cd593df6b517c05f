from __future__ import annotations

import asyncio

import pytest

from smartcar_demo.joins import gather_all, settle_all


async def _value(value: int, delay: float = 0.0) -> int:
    await asyncio.sleep(delay)
    return value


async def _fail(message: str, delay: float = 0.0) -> int:
    await asyncio.sleep(delay)
    raise ValueError(message)


@pytest.mark.asyncio
async def test_gather_all_returns_results_in_input_order() -> None:
    results = await gather_all([_value(1, 0.02), _value(2, 0.0), _value(3, 0.01)])
    assert results == [1, 2, 3]


@pytest.mark.asyncio
async def test_gather_all_of_nothing_is_empty() -> None:
    assert await gather_all([]) == []


@pytest.mark.asyncio
async def test_gather_all_fails_fast_and_cancels_siblings() -> None:
    finished: list[str] = []

    async def slow() -> None:
        await asyncio.sleep(5)
        finished.append("slow")

    with pytest.raises(ValueError, match="nope"):
        await asyncio.wait_for(gather_all([slow(), _fail("nope")]), timeout=1)

    assert finished == []


@pytest.mark.asyncio
async def test_gather_all_runs_members_concurrently() -> None:
    started = 0
    all_started = asyncio.Event()

    async def member() -> None:
        nonlocal started
        started += 1
        if started == 3:
            all_started.set()
        await all_started.wait()

    await asyncio.wait_for(gather_all([member(), member(), member()]), timeout=1)
    assert started == 3


@pytest.mark.asyncio
async def test_settle_all_waits_for_everyone_and_returns_failures() -> None:
    results = await settle_all([_fail("first"), _value(2, 0.01), _fail("third", 0.02)])

    assert isinstance(results[0], ValueError)
    assert results[1] == 2
    assert str(results[2]) == "third"


@pytest.mark.asyncio
async def test_settle_all_of_nothing_is_empty() -> None:
    assert await settle_all([]) == []
