"""In-memory cache for computed analytics, keyed by trade snapshot fingerprint."""
from __future__ import annotations

import hashlib
import json
import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel

from journal_analytics.config.settings import ANALYTICS_CACHE_TTL_MINUTES
from journal_analytics.data.models import Trade

logger = logging.getLogger(__name__)

InvalidationHook = Callable[[Optional[str]], None]


def fingerprint(trades: Sequence[Trade], *config: Optional[BaseModel]) -> str:
    """SHA-256 over the trade snapshot and any configuration models.

    Equal snapshots hash equal regardless of object identity; a ``None``
    config hashes differently from an explicit default one.
    """
    payload = {
        "trades": [t.model_dump(mode="json") for t in trades],
        "config": [c.model_dump(mode="json") if c is not None else None for c in config],
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(encoded).hexdigest()


class AnalysisCache:
    """In-memory cache with TTL, LRU eviction and invalidation hooks.

    Callers own the instance and pass it where it is needed; nothing in the
    analytics package keeps one at module level.
    """

    def __init__(self, default_ttl_minutes: Optional[float] = None, max_size: int = 100):
        ttl = ANALYTICS_CACHE_TTL_MINUTES if default_ttl_minutes is None else default_ttl_minutes
        # Least recently used first
        self._store: OrderedDict[str, tuple[Any, datetime]] = OrderedDict()
        self._default_ttl = timedelta(minutes=ttl)
        self._max_size = max_size
        self._hooks: list[InvalidationHook] = []
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return cached value if present and not expired, else None."""
        if key in self._store:
            value, expires_at = self._store[key]
            if datetime.now() < expires_at:
                self._hits += 1
                self._store.move_to_end(key)
                logger.debug(f"Cache hit for {key[:12]}")
                return value
            del self._store[key]
        self._misses += 1
        logger.debug(f"Cache miss for {key[:12]}")
        return None

    def set(self, key: str, value: Any, ttl_minutes: Optional[float] = None) -> None:
        """Cache a value, evicting the least recently used entry when full."""
        if key in self._store:
            del self._store[key]
        while self._store and len(self._store) >= self._max_size:
            evicted, _ = self._store.popitem(last=False)
            logger.debug(f"Evicting least recently used entry {evicted[:12]}")
        ttl = timedelta(minutes=ttl_minutes) if ttl_minutes is not None else self._default_ttl
        self._store[key] = (value, datetime.now() + ttl)

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute()
        self.set(key, value)
        return value

    def on_invalidate(self, hook: InvalidationHook) -> None:
        """Register a callback fired with the key (or None on clear) when entries are invalidated."""
        self._hooks.append(hook)

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)
        self._fire(key)

    def clear(self) -> None:
        """Clear all cached data."""
        self._store.clear()
        self._fire(None)

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = datetime.now()
        expired = [k for k, (_, expires_at) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]
        return len(expired)

    def stats(self) -> dict[str, int]:
        now = datetime.now()
        valid = sum(1 for _, expires_at in self._store.values() if now < expires_at)
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._store),
            "valid_entries": valid,
            "expired_entries": len(self._store) - valid,
            "max_size": self._max_size,
        }

    def __len__(self) -> int:
        return len(self._store)

    def _fire(self, key: Optional[str]) -> None:
        for hook in self._hooks:
            hook(key)
