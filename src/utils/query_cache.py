from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple

from utils.logger import get_logger

_logger = get_logger(__name__)

QueryKey = Tuple[Hashable, ...]


class QueryCache:
    """
    Keyed cache of fetched backend results.

    Reads go through fetch(); mutations call invalidate() with a key prefix,
    e.g. ("notifications",) drops the cached list of every user, so the next
    read hits the backend again. A fetch that is still in flight when its key
    is invalidated returns its result to the caller but does not cache it.
    """

    def __init__(self) -> None:
        self._entries: Dict[QueryKey, Any] = {}
        self._locks: Dict[QueryKey, asyncio.Lock] = {}
        self._generations: Dict[QueryKey, int] = {}
        self._epoch = 0

    def _stamp(self, key: QueryKey) -> Tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        if key in self._entries:
            return self._entries[key]
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # another caller may have filled it while we waited
            if key in self._entries:
                return self._entries[key]
            _logger.debug(f"cache miss {key}")
            stamp = self._stamp(key)
            value = await fetcher()
            if self._stamp(key) == stamp:
                self._entries[key] = value
            else:
                _logger.debug(f"dropped stale result for {key}")
            return value

    def invalidate(self, prefix: QueryKey) -> int:
        # locked keys include fetches still in flight
        for k in set(self._entries) | set(self._locks):
            if k[: len(prefix)] == prefix:
                self._generations[k] = self._generations.get(k, 0) + 1
        stale = [k for k in self._entries if k[: len(prefix)] == prefix]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._epoch += 1
        self._entries.clear()
        self._locks.clear()
        self._generations.clear()

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries
