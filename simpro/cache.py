from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .config import SimproConfig
from .constants import CACHE_KEY_PREFIX, CACHEABLE_METHODS
from .stores import MemoryStore, Store, make_store


def fingerprint(
    method: str,
    url: str,
    query: Optional[Mapping[str, Any]] = None,
    body: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Deterministic cache key for a resolved request.

    Query keys are sorted and the body is serialised with sorted keys, so neither
    parameter order nor header order changes the key. Headers are not part of it.
    """
    canonical = json.dumps(
        {
            "method": str(method).upper(),
            "url": url,
            "query": sorted((str(k), str(v)) for k, v in (query or {}).items()),
            "body": body,
        },
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Dict[str, Any]
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheLayer:
    def __init__(
        self,
        *,
        expiry_seconds: int,
        store: Optional[Store] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.expiry_seconds = max(0, int(expiry_seconds))
        self._clock = clock
        self.store: Store = store if store is not None else MemoryStore(clock=clock)

    @classmethod
    def from_config(
        cls,
        cfg: SimproConfig,
        *,
        store: Optional[Store] = None,
        clock: Callable[[], float] = time.time,
    ) -> "CacheLayer":
        if store is None and cfg.cache.expiry_seconds > 0:
            store = make_store(cfg.cache.driver, store_path=cfg.store_path, redis_url=cfg.redis_url, clock=clock)
        return cls(expiry_seconds=cfg.cache.expiry_seconds, store=store, clock=clock)

    @property
    def enabled(self) -> bool:
        return self.expiry_seconds > 0

    @staticmethod
    def is_cacheable(method: str) -> bool:
        return str(method).upper() in CACHEABLE_METHODS

    def _key(self, fp: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{fp}"

    def get(self, fp: str) -> Optional[CacheEntry]:
        doc = self.store.get(self._key(fp))
        if not doc:
            return None
        entry = CacheEntry(key=fp, payload=dict(doc.get("payload") or {}), expires_at=float(doc.get("expires_at") or 0.0))
        if entry.is_expired(self._clock()):
            self.store.delete(self._key(fp))
            return None
        return entry

    def put(self, fp: str, payload: Mapping[str, Any], ttl_seconds: Optional[int] = None) -> Optional[CacheEntry]:
        ttl = self.expiry_seconds if ttl_seconds is None else int(ttl_seconds)
        if ttl <= 0:
            return None
        entry = CacheEntry(key=fp, payload=dict(payload), expires_at=self._clock() + ttl)
        self.store.set(self._key(fp), {"payload": entry.payload, "expires_at": entry.expires_at}, ttl_seconds=ttl)
        return entry

    def forget(self, fp: str) -> None:
        self.store.delete(self._key(fp))
