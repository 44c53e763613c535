"""
In-memory TTL cache for scrape responses.

Not suitable for multi-instance deployments; each worker keeps its own copy.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

TV_SHOWS_CACHE_KEY = "netflix_tv_shows"


class ResponseCache:
    def __init__(self, ttl_seconds: float = 3600, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}  # key -> (value, expires_at)

    def get(self, key: str) -> Any | None:
        cached = self._entries.get(key)
        if cached is None:
            return None
        value, expires_at = cached
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock() + self._ttl_seconds)

    def clear(self, key: str | None = None) -> None:
        if key:
            self._entries.pop(key, None)
        else:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
