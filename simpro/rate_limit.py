"""
Client-side rate limiting for the Simpro API.

Two concerns share one fixed 1-second window kept in a Store (so several processes
hitting the same Simpro account can share it):

Pre-emptive:
  Before dispatch, once the calls made in the current window reach `threshold`,
  the caller sleeps until the window resets. Requests are delayed, never dropped.

Reactive:
  A 429 gives a cooldown of 60s + random jitter in [0, 60). The window is marked
  exceeded until the cooldown ends, so every instance on the same store waits too.
  A further 429 in the same episode escalates: pending delay + fresh jitter.
"""
from __future__ import annotations

import random
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from .config import SimproConfig
from .constants import (
    COOLDOWN_BASE_SECONDS,
    COOLDOWN_MAX_JITTER_SECONDS,
    DEFAULT_LIMITER_PREFIX,
    RATE_LIMIT_WINDOW_SECONDS,
)
from .errors import SimproConfigError
from .events import debug, warn
from .stores import MemoryStore, Store, make_store


@dataclass
class LimitWindow:
    hits: int = 0
    expires_at: float = 0.0
    exceeded: bool = False

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "LimitWindow":
        if not d:
            return cls()
        return cls(
            hits=int(d.get("hits") or 0),
            expires_at=float(d.get("expires_at") or 0.0),
            exceeded=bool(d.get("exceeded")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_open(self, now: float) -> bool:
        return now < self.expires_at


class RateLimiter:
    def __init__(
        self,
        *,
        per_second: int,
        threshold: Optional[int] = None,
        store: Optional[Store] = None,
        prefix: str = DEFAULT_LIMITER_PREFIX,
        max_retries: Optional[int] = None,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        if per_second <= 0:
            raise SimproConfigError("per_second must be > 0")
        threshold = per_second if threshold is None else int(threshold)
        if not 0 < threshold <= per_second:
            raise SimproConfigError(f"threshold must be in 1..{per_second}, got {threshold}")

        self.per_second = int(per_second)
        self.threshold = threshold
        self.max_retries = max_retries
        self.window_seconds = float(window_seconds)
        self.store: Store = store if store is not None else MemoryStore(clock=clock)
        self.key = f"{prefix}:limit:allow_{self.per_second}_every_{self.window_seconds:g}s"

        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls,
        cfg: SimproConfig,
        *,
        store: Optional[Store] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> "RateLimiter":
        rl = cfg.rate_limit
        if store is None:
            store = make_store(rl.driver, store_path=cfg.store_path, redis_url=cfg.redis_url, clock=clock)
        return cls(
            per_second=rl.per_second,
            threshold=rl.effective_threshold,
            store=store,
            prefix=rl.prefix,
            max_retries=rl.max_retries,
            clock=clock,
            sleep=sleep,
            rng=rng,
        )

    # -----------------------------
    # Window state
    # -----------------------------
    def window(self) -> LimitWindow:
        return LimitWindow.from_dict(self.store.get(self.key))

    def remaining_wait(self) -> float:
        """Seconds the next call must wait before it may be dispatched (0 = go)."""
        now = self._clock()
        w = self.window()
        if not w.is_open(now):
            return 0.0
        if w.exceeded or w.hits >= self.threshold:
            return max(0.0, w.expires_at - now)
        return 0.0

    def hit(self) -> LimitWindow:
        now = self._clock()

        def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            w = LimitWindow.from_dict(current)
            if not w.is_open(now):
                w = LimitWindow(hits=0, expires_at=now + self.window_seconds)
            w.hits += 1
            return w.to_dict()

        return LimitWindow.from_dict(self.store.update(self.key, _apply, ttl_seconds=self.window_seconds * 2))

    def acquire(self, *, stream: Optional[str] = None) -> float:
        """
        Block until the window allows another call, then count the call.

        Returns the total seconds slept.
        """
        slept = 0.0
        while True:
            wait = self.remaining_wait()
            if wait <= 0:
                break
            debug(
                "rate_limit.throttled",
                stream=stream,
                wait_s=round(wait, 3),
                threshold=self.threshold,
                per_second=self.per_second,
            )
            self._sleep(wait)
            slept += wait
        self.hit()
        return slept

    # -----------------------------
    # 429 handling
    # -----------------------------
    def jitter(self) -> float:
        return self._rng.random() * COOLDOWN_MAX_JITTER_SECONDS

    def cooldown(self, pending_delay: Optional[float] = None) -> float:
        """
        First 429 in an episode: 60s + jitter.
        Later 429s: the pending delay + fresh jitter, so waits never shrink.
        """
        if pending_delay is None:
            return COOLDOWN_BASE_SECONDS + self.jitter()
        return float(pending_delay) + self.jitter()

    def exceeded(self, release_in_seconds: float) -> LimitWindow:
        now = self._clock()
        release_at = now + max(0.0, float(release_in_seconds))

        def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            w = LimitWindow.from_dict(current)
            w.hits = max(w.hits, self.per_second)
            w.expires_at = max(w.expires_at, release_at)
            w.exceeded = True
            return w.to_dict()

        ttl = max(0.0, release_at - now) + self.window_seconds
        return LimitWindow.from_dict(self.store.update(self.key, _apply, ttl_seconds=ttl))

    def backoff(
        self,
        pending_delay: Optional[float] = None,
        *,
        attempt: int = 0,
        stream: Optional[str] = None,
        url: Optional[str] = None,
    ) -> float:
        """Handle one 429: compute the cooldown, publish it to the shared window, sleep it."""
        delay = self.cooldown(pending_delay)
        self.exceeded(delay)
        warn(
            "http.rate_limited",
            stream=stream,
            url=url,
            attempt=attempt,
            max_retries=self.max_retries,
            sleep_seconds=round(delay, 3),
            escalated=pending_delay is not None,
        )
        self._sleep(delay)
        return delay

    def retries_exhausted(self, retries: int) -> bool:
        return self.max_retries is not None and retries > self.max_retries
