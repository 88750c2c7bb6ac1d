"""
In-memory response cache for outbound API calls.

Keys are request fingerprints (serialized query + variables, or a path),
values are raw response bodies. Storage and eviction are a cachetools cache:
FIFOCache when no TTL is configured, TTLCache otherwise. Lookups take the read
side of an aiorwlock lock, inserts take the write side. Concurrent misses on
the same key share one in-flight fetch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from typing import Awaitable, Callable

import aiorwlock
from cachetools import FIFOCache, TTLCache

logger = logging.getLogger(__name__)


def fingerprint(payload) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class CacheCell:
    def __init__(
        self,
        ttl: float | None = None,
        max_size: int | None = 1000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_size = max_size
        maxsize = math.inf if max_size is None else max_size
        if ttl is None:
            self._entries = FIFOCache(maxsize=maxsize)
        else:
            self._entries = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = aiorwlock.RWLock()
        self._inflight: dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> str | None:
        async with self._lock.reader_lock:
            return self._entries.get(key)

    async def set(self, key: str, value: str):
        async with self._lock.writer_lock:
            self._entries[key] = value

    async def invalidate(self, key: str):
        async with self._lock.writer_lock:
            self._entries.pop(key, None)

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[str]]) -> str:
        while True:
            cached = await self.get(key)
            if cached is not None:
                return cached

            pending = self._inflight.get(key)
            if pending is None:
                break
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                # the fetching task was cancelled, not us: take over the fetch
                logger.debug("In-flight fetch for %s was cancelled, retrying", key[:80])

        fut = asyncio.get_running_loop().create_future()
        self._inflight[key] = fut
        try:
            value = await fetch()
            await self.set(key, value)
        except asyncio.CancelledError:
            fut.cancel()
            raise
        except Exception as e:
            fut.set_exception(e)
            # nobody else may be waiting on it
            fut.exception()
            raise
        else:
            fut.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)
