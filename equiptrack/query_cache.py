import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from equiptrack.config import settings

logger = logging.getLogger(__name__)

QueryKey = tuple


@dataclass
class _Entry:
    data: Any
    fetched_at: float
    stale: bool = False


class QueryCache:
    """In-memory cache dotazů jedné session.

    Klíče jsou n-tice, např. ("devices", 5, "movements"). Invalidace podle
    prefixu záznam neodstraní, jen ho označí jako zastaralý; další čtení
    přes get_or_fetch() ho znovu načte z backendu.
    """

    def __init__(self, stale_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.stale_seconds = settings.QUERY_STALE_SECONDS if stale_seconds is None else stale_seconds
        self._clock = clock
        self._entries: dict[QueryKey, _Entry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def _is_fresh(self, entry: _Entry) -> bool:
        return not entry.stale and (self._clock() - entry.fetched_at) < self.stale_seconds

    def is_fresh(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._is_fresh(entry)

    def peek(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    async def get_or_fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.data
        # A failed or cancelled fetch must leave the cache as it was
        data = await fetcher()
        self.set_data(key, data)
        return data

    def set_data(self, key: QueryKey, data: Any) -> None:
        self._entries[key] = _Entry(data=data, fetched_at=self._clock())

    def update_data(self, key: QueryKey, fn: Callable[[Any], Any]) -> Any:
        """Apply fn to cached data in place; no-op when the key is not cached."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.data = fn(entry.data)
        return entry.data

    def invalidate(self, *prefix) -> int:
        count = 0
        for key, entry in self._entries.items():
            if key[:len(prefix)] == prefix:
                entry.stale = True
                count += 1
        if count:
            logger.debug("Invalidováno %d dotazů s prefixem %s", count, prefix)
        return count

    def clear(self) -> None:
        self._entries.clear()


class CacheRegistry:
    """One QueryCache per session credential, least recently used evicted first."""

    def __init__(self, max_sessions: int | None = None):
        self.max_sessions = max_sessions or settings.MAX_CACHED_SESSIONS
        self._caches: OrderedDict[str, QueryCache] = OrderedDict()

    def __len__(self) -> int:
        return len(self._caches)

    def for_session(self, session_key: str) -> QueryCache:
        cache = self._caches.get(session_key)
        if cache is None:
            cache = QueryCache()
            self._caches[session_key] = cache
            while len(self._caches) > self.max_sessions:
                self._caches.popitem(last=False)
        else:
            self._caches.move_to_end(session_key)
        return cache

    def drop(self, session_key: str) -> None:
        self._caches.pop(session_key, None)
