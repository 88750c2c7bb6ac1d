import asyncio

import pytest

from kasukibot.core.cache import CacheCell, fingerprint
from kasukibot.core.errors import WebRequestError


def counting_fetch(value="body"):
    calls = {"n": 0}

    async def fetch():
        calls["n"] += 1
        return f"{value}-{calls['n']}"

    return fetch, calls


async def test_hit_returns_first_value():
    cache = CacheCell()
    fetch, calls = counting_fetch()
    first = await cache.get_or_fetch("k", fetch)
    second = await cache.get_or_fetch("k", fetch)
    assert first == second == "body-1"
    assert calls["n"] == 1


async def test_failure_is_not_cached():
    cache = CacheCell()

    async def broken():
        raise WebRequestError("boom")

    with pytest.raises(WebRequestError):
        await cache.get_or_fetch("k", broken)
    assert await cache.get("k") is None

    fetch, calls = counting_fetch()
    assert await cache.get_or_fetch("k", fetch) == "body-1"


async def test_concurrent_misses_share_one_fetch():
    cache = CacheCell()
    release = asyncio.Event()
    calls = {"n": 0}

    async def slow():
        calls["n"] += 1
        await release.wait()
        return "shared"

    tasks = [asyncio.create_task(cache.get_or_fetch("k", slow)) for _ in range(5)]
    for _ in range(5):
        await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks)

    assert results == ["shared"] * 5
    assert calls["n"] == 1


async def test_concurrent_waiters_see_the_failure():
    cache = CacheCell()
    release = asyncio.Event()

    async def slow_fail():
        await release.wait()
        raise WebRequestError("down")

    tasks = [asyncio.create_task(cache.get_or_fetch("k", slow_fail)) for _ in range(3)]
    for _ in range(5):
        await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, WebRequestError) for r in results)


async def test_oldest_entry_is_evicted():
    cache = CacheCell(max_size=2)
    await cache.set("a", "1")
    await cache.set("b", "2")
    await cache.set("c", "3")
    assert len(cache) == 2
    assert await cache.get("a") is None
    assert await cache.get("c") == "3"


async def test_ttl_expires_entries():
    now = {"t": 100.0}
    cache = CacheCell(ttl=60, timer=lambda: now["t"])
    await cache.set("k", "v")
    assert await cache.get("k") == "v"

    now["t"] += 61
    assert await cache.get("k") is None


async def test_ttl_cache_still_bounded():
    cache = CacheCell(ttl=60, max_size=2)
    for key in "abc":
        await cache.set(key, key.upper())
    assert len(cache) == 2
    assert await cache.get("a") is None


async def test_waiter_takes_over_when_the_fetching_task_is_cancelled():
    cache = CacheCell()
    started = asyncio.Event()
    calls = {"n": 0}

    async def fetch():
        calls["n"] += 1
        if calls["n"] == 1:
            started.set()
            await asyncio.Event().wait()
        return "second"

    leader = asyncio.create_task(cache.get_or_fetch("k", fetch))
    await started.wait()
    waiter = asyncio.create_task(cache.get_or_fetch("k", fetch))
    for _ in range(3):
        await asyncio.sleep(0)

    leader.cancel()
    assert await waiter == "second"
    assert calls["n"] == 2
    with pytest.raises(asyncio.CancelledError):
        await leader
    assert await cache.get("k") == "second"


async def test_invalidate():
    cache = CacheCell()
    await cache.set("k", "v")
    await cache.invalidate("k")
    assert await cache.get("k") is None


def test_fingerprint_is_order_independent():
    assert fingerprint({"a": 1, "b": [1, 2]}) == fingerprint({"b": [1, 2], "a": 1})
    assert fingerprint("stats") == "stats"
