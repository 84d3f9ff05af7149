"""Two-tier cache: a bounded in-process layer in front of an optional redis layer.

The memory layer always works. The shared layer is only used when a redis URL
(or client) is supplied and answers a ping; any redis error after that is
logged and the call falls back to memory alone, so callers never see cache
failures.
"""
from __future__ import annotations

import json
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

import redis

from jobscout.log import get_logger

log = get_logger(__name__)

MEMORY_TTL_SECONDS = 300
SHARED_TTL_SECONDS = 3600
MAX_MEMORY_KEYS = 1000


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float
    tags: tuple[str, ...] = ()

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class _Counters:
    hits: int = 0
    misses: int = 0


class MemoryLayer:
    def __init__(self, max_keys: int = MAX_MEMORY_KEYS, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_keys = max_keys
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self.counters = _Counters()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.counters.misses += 1
                return None
            if entry.expired(self.clock()):
                self._drop(key)
                self.counters.misses += 1
                return None
            self.counters.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: float, tags: Iterable[str] = ()) -> None:
        with self._lock:
            now = self.clock()
            if key in self._entries:
                self._drop(key)
            elif len(self._entries) >= self.max_keys:
                self._make_room(now)
            entry = CacheEntry(key=key, value=value, expires_at=now + ttl, tags=tuple(tags))
            self._entries[key] = entry
            for tag in entry.tags:
                self._tags.setdefault(tag, set()).add(key)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._drop(key)

    def keys_for_tag(self, tag: str) -> list[str]:
        with self._lock:
            return sorted(self._tags.get(tag, ()))

    def keys(self) -> list[str]:
        with self._lock:
            now = self.clock()
            return [k for k, e in self._entries.items() if not e.expired(now)]

    def flush(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._tags.clear()
            return count

    def _drop(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            members = self._tags.get(tag)
            if members is not None:
                members.discard(key)
                if not members:
                    del self._tags[tag]
        return True

    def _make_room(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if e.expired(now)]:
            self._drop(key)
        if len(self._entries) >= self.max_keys:
            soonest = min(self._entries.values(), key=lambda e: e.expires_at)
            self._drop(soonest.key)


class SharedLayer:
    """redis-backed layer. Values are stored as ``{"v": value, "t": tags}`` JSON."""

    def __init__(self, client: redis.Redis | None) -> None:
        self.client = client
        self.available = False
        if client is None:
            return
        try:
            client.ping()
            self.available = True
            log.info("Redis cache connected")
        except redis.RedisError as exc:
            log.warning("Redis connection failed, using memory cache only: %s", exc)

    @classmethod
    def from_url(cls, url: str) -> SharedLayer:
        if not url:
            log.info("Redis not configured, using memory cache only")
            return cls(None)
        client = redis.Redis.from_url(
            url, socket_timeout=2, socket_connect_timeout=2, decode_responses=True,
        )
        return cls(client)

    def _guard(self, op: str, fn: Callable[[], Any], default: Any = None) -> Any:
        if not self.available or self.client is None:
            return default
        try:
            return fn()
        except (redis.RedisError, ValueError, TypeError) as exc:
            log.warning("Cache %s error: %s", op, exc)
            return default

    def get(self, key: str) -> Any | None:
        return self.get_with_ttl(key)[0]

    def get_with_ttl(self, key: str) -> tuple[Any | None, float | None]:
        """Value plus its remaining lifetime in seconds (``None`` when redis keeps it forever)."""
        raw = self._guard("get", lambda: self.client.get(key))
        if not raw:
            return None, None
        remaining_ms = self._guard("pttl", lambda: self.client.pttl(key))
        # -2: the key expired between the two calls
        if remaining_ms == -2:
            return None, None
        try:
            value = json.loads(raw)["v"]
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("Discarding undecodable cache entry %s: %s", key, exc)
            return None, None
        if remaining_ms is None:
            # Unknown lifetime: serve it but keep no local copy
            return value, 0.0
        return value, (remaining_ms / 1000 if remaining_ms >= 0 else None)

    def set(self, key: str, value: Any, ttl: float, tags: Iterable[str] = ()) -> None:
        tags = list(tags)
        ttl_ms = max(1, int(ttl * 1000))

        def _write() -> None:
            payload = json.dumps({"v": value, "t": tags})
            pipe = self.client.pipeline()
            pipe.psetex(key, ttl_ms, payload)
            for tag in tags:
                pipe.sadd(f"tag:{tag}", key)
                pipe.pexpire(f"tag:{tag}", ttl_ms)
            pipe.execute()

        self._guard("set", _write)

    def delete(self, key: str) -> bool:
        return bool(self._guard("delete", lambda: self.client.delete(key), 0))

    def invalidate_tag(self, tag: str) -> list[str]:
        def _invalidate() -> list[str]:
            removed: list[str] = []
            for key in self.client.smembers(f"tag:{tag}"):
                raw = self.client.get(key)
                if raw is None:
                    continue
                # Skip keys rewritten since without this tag
                if tag in json.loads(raw).get("t", []):
                    self.client.delete(key)
                    removed.append(key)
            self.client.delete(f"tag:{tag}")
            return removed

        return self._guard("invalidate", _invalidate, [])

    def invalidate_pattern(self, pattern: str) -> list[str]:
        def _invalidate() -> list[str]:
            keys = list(self.client.scan_iter(match=f"*{pattern}*"))
            if keys:
                self.client.delete(*keys)
            return keys

        return self._guard("pattern invalidate", _invalidate, [])

    def flush(self) -> None:
        self._guard("flush", lambda: self.client.flushdb())

    def close(self) -> None:
        if self.client is not None:
            self._guard("close", lambda: self.client.close())
            log.info("Cache connections closed")


class CacheTier:
    """Generic key/value cache with TTLs and tag invalidation.

    Args:
        memory_ttl: Default TTL (seconds) for the memory layer.
        shared_ttl: Default TTL (seconds) for the redis layer.
        max_memory_keys: Memory layer capacity; the entry closest to expiry
            is evicted when full.
        redis_url: Connect the shared layer to this URL.
        client: Use an existing redis client instead of ``redis_url``.
    """

    def __init__(
        self,
        *,
        memory_ttl: int = MEMORY_TTL_SECONDS,
        shared_ttl: int = SHARED_TTL_SECONDS,
        max_memory_keys: int = MAX_MEMORY_KEYS,
        redis_url: str = "",
        client: redis.Redis | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.memory_ttl = memory_ttl
        self.shared_ttl = shared_ttl
        self.memory = MemoryLayer(max_memory_keys, clock=clock)
        self.shared = SharedLayer(client) if client is not None else SharedLayer.from_url(redis_url)
        log.info(
            "Cache initialized (memory: %d keys, redis: %s)",
            max_memory_keys, "enabled" if self.shared.available else "disabled",
        )

    @classmethod
    def from_settings(cls, settings: Any) -> CacheTier:
        return cls(
            memory_ttl=settings.cache_memory_ttl,
            shared_ttl=settings.cache_shared_ttl,
            max_memory_keys=settings.cache_max_keys,
            redis_url=settings.redis_url,
        )

    def get(self, key: str) -> Any | None:
        value = self.memory.get(key)
        if value is not None:
            return value
        value, remaining = self.shared.get_with_ttl(key)
        if value is not None:
            # The memory copy must not outlive the shared one
            ttl = self.memory_ttl if remaining is None else min(self.memory_ttl, remaining)
            if ttl > 0:
                self.memory.set(key, value, ttl)
        return value

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: float | None = None,
        tags: Iterable[str] = (),
        memory_only: bool = False,
        shared_only: bool = False,
    ) -> None:
        tags = tuple(tags)
        if ttl is not None and ttl <= 0:
            # Already expired: make sure no stale copy survives either
            self.delete(key)
            return
        if not shared_only:
            self.memory.set(key, value, ttl if ttl is not None else self.memory_ttl, tags)
        if not memory_only:
            shared_ttl = ttl if ttl is not None else self.shared_ttl
            self.shared.set(key, value, shared_ttl, tags)

    def delete(self, key: str) -> None:
        self.memory.delete(key)
        self.shared.delete(key)

    def invalidate_by_tag(self, tag: str) -> int:
        """Remove every key written with *tag*; untagged keys are never touched.

        Use :meth:`flush_all` to clear the whole cache.
        """
        removed = set(self.memory.keys_for_tag(tag))
        for key in removed:
            self.memory.delete(key)
        shared_removed = self.shared.invalidate_tag(tag)
        # A key evicted from memory may still live in redis under the same tag
        for key in shared_removed:
            self.memory.delete(key)
        removed.update(shared_removed)
        log.debug("Invalidated %d key(s) tagged %r", len(removed), tag)
        return len(removed)

    def invalidate_by_pattern(self, pattern: str) -> int:
        removed = {k for k in self.memory.keys() if pattern in k}
        for key in removed:
            self.memory.delete(key)
        removed.update(self.shared.invalidate_pattern(re.sub(r"([*?\[\]])", r"\\\1", pattern)))
        return len(removed)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        *,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory()
        if value is not None:
            self.set(key, value, ttl=ttl, tags=tags)
        return value

    def stats(self) -> dict[str, Any]:
        hits, misses = self.memory.counters.hits, self.memory.counters.misses
        return {
            "memory": {
                "keys": len(self.memory.keys()),
                "hits": hits,
                "misses": misses,
                "hit_rate": hits / (hits + misses) if hits + misses else 0.0,
            },
            "redis": {
                "configured": self.shared.client is not None,
                "available": self.shared.available,
            },
        }

    def flush_all(self) -> None:
        self.memory.flush()
        self.shared.flush()

    def close(self) -> None:
        self.memory.flush()
        self.shared.close()


def _slug(value: str) -> str:
    return re.sub(r"\s+", "-", (value or "").strip().lower())


@dataclass(frozen=True)
class _CacheKeys:
    """Consistent key naming across the pipeline."""

    prefix: str = field(default="jobscout")

    def job_search(self, query: str, location: str | None = None, remote_only: bool | None = None) -> str:
        mode = {True: "remote", False: "onsite", None: "any"}[remote_only]
        return f"{self.prefix}:job:search:{_slug(query)}:{_slug(location or '') or 'any'}:{mode}"

    def match(self, listing_id: str, profile_fingerprint: str) -> str:
        return f"{self.prefix}:job:match:{profile_fingerprint}:{listing_id}"


cache_keys = _CacheKeys()
