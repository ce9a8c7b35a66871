"""
Key/value stores backing the rate-limit windows and the response cache.

The connector itself does no locking: it assumes one thread per connector instance.
State that is shared between processes lives in a store, and the store owns atomicity:

- memory: process-local dict (default; nothing shared)
- file:   one JSON document per key, read-modify-write under an exclusive portalocker lock
- redis:  SET PX for expiry, WATCH/MULTI transactions for read-modify-write

Values are JSON-able dicts. `ttl_seconds=None` keeps a value until it is overwritten.
"""
from __future__ import annotations

import hashlib
import json
import os
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Protocol, Tuple

import portalocker
import redis

from .errors import SimproConfigError

Clock = Callable[[], float]
Updater = Callable[[Optional[Dict[str, Any]]], Dict[str, Any]]


class Store(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[float] = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def update(self, key: str, fn: Updater, ttl_seconds: Optional[float] = None) -> Dict[str, Any]: ...


def _expires_at(clock: Clock, ttl_seconds: Optional[float]) -> Optional[float]:
    if ttl_seconds is None:
        return None
    return clock() + float(ttl_seconds)


def _is_live(expires_at: Optional[float], now: float) -> bool:
    return expires_at is None or now < float(expires_at)


# -----------------------------
# Memory
# -----------------------------
class MemoryStore:
    """
    Process-local store. Expired entries are dropped when read, and swept on
    write at most once per `sweep_interval_s`, so keys that are never read again
    (one per distinct cached GET) do not pile up.
    """

    def __init__(self, *, clock: Clock = time.time, sweep_interval_s: float = 1.0) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[Dict[str, Any], Optional[float]]] = {}
        self.sweep_interval_s = float(sweep_interval_s)
        self._last_sweep = clock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        hit = self._data.get(key)
        if hit is None:
            return None
        value, expires_at = hit
        if not _is_live(expires_at, self._clock()):
            del self._data[key]
            return None
        return dict(value)

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[float] = None) -> None:
        self._maybe_sweep()
        self._data[key] = (dict(value), _expires_at(self._clock, ttl_seconds))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def update(self, key: str, fn: Updater, ttl_seconds: Optional[float] = None) -> Dict[str, Any]:
        new_value = fn(self.get(key))
        self.set(key, new_value, ttl_seconds)
        return dict(new_value)

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        self._last_sweep = now
        dead = [k for k, (_, expires_at) in self._data.items() if not _is_live(expires_at, now)]
        for k in dead:
            del self._data[k]
        return len(dead)

    def _maybe_sweep(self) -> None:
        if self._clock() - self._last_sweep >= self.sweep_interval_s:
            self.sweep()

    def __len__(self) -> int:
        return len(self._data)


# -----------------------------
# File (cross-process via portalocker)
# -----------------------------
@contextmanager
def file_lock(file_path: str) -> Iterator[Any]:
    """Cross-platform exclusive lock around a store document."""
    abs_path = os.path.abspath(file_path)
    parent = os.path.dirname(abs_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if not os.path.exists(abs_path):
        open(abs_path, "a", encoding="utf-8").close()

    with open(abs_path, "r+", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            yield f
        finally:
            portalocker.unlock(f)


class FileStore:
    def __init__(self, directory: str, *, clock: Clock = time.time) -> None:
        self.directory = directory
        self._clock = clock

    def _path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.directory, f"{digest}.json")

    def _read(self, f: Any) -> Optional[Dict[str, Any]]:
        f.seek(0)
        raw = f.read().strip()
        if not raw:
            return None
        doc = json.loads(raw)
        if not _is_live(doc.get("expires_at"), self._clock()):
            return None
        value = doc.get("value")
        return value if isinstance(value, dict) else None

    def _write(self, f: Any, key: str, value: Dict[str, Any], ttl_seconds: Optional[float]) -> None:
        doc = {"key": key, "value": value, "expires_at": _expires_at(self._clock, ttl_seconds)}
        f.seek(0)
        json.dump(doc, f)
        f.truncate()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with file_lock(path) as f:
            return self._read(f)

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[float] = None) -> None:
        with file_lock(self._path(key)) as f:
            self._write(f, key, value, ttl_seconds)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if not os.path.exists(path):
            return
        with file_lock(path) as f:
            f.seek(0)
            f.truncate()

    def update(self, key: str, fn: Updater, ttl_seconds: Optional[float] = None) -> Dict[str, Any]:
        with file_lock(self._path(key)) as f:
            new_value = fn(self._read(f))
            self._write(f, key, new_value, ttl_seconds)
            return dict(new_value)


# -----------------------------
# Redis
# -----------------------------
class RedisStore:
    def __init__(self, client: "redis.Redis", *, namespace: str = "simpro") -> None:
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, *, namespace: str = "simpro") -> "RedisStore":
        return cls(redis.Redis.from_url(url), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    @staticmethod
    def _px(ttl_seconds: Optional[float]) -> Optional[int]:
        if ttl_seconds is None:
            return None
        # Redis rejects PX <= 0; an already-expired value is stored for 1ms.
        return max(1, int(float(ttl_seconds) * 1000))

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        value = json.loads(raw)
        return value if isinstance(value, dict) else None

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[float] = None) -> None:
        self.client.set(self._key(key), json.dumps(value), px=self._px(ttl_seconds))

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def update(self, key: str, fn: Updater, ttl_seconds: Optional[float] = None) -> Dict[str, Any]:
        rkey = self._key(key)
        result: Dict[str, Any] = {}

        def _txn(pipe: "redis.client.Pipeline") -> None:
            raw = pipe.get(rkey)
            current = json.loads(raw) if raw is not None else None
            new_value = fn(current if isinstance(current, dict) else None)
            pipe.multi()
            pipe.set(rkey, json.dumps(new_value), px=self._px(ttl_seconds))
            result.clear()
            result.update(new_value)

        self.client.transaction(_txn, rkey)
        return dict(result)


def make_store(driver: str, *, store_path: str, redis_url: str, clock: Clock = time.time) -> Store:
    d = (driver or "memory").strip().lower()
    if d == "memory":
        return MemoryStore(clock=clock)
    if d == "file":
        return FileStore(store_path, clock=clock)
    if d == "redis":
        return RedisStore.from_url(redis_url)
    raise SimproConfigError(f"Unknown store driver: {driver!r}")
