from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_CACHE_EXPIRE_SECONDS,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_LIMITER_PREFIX,
    DEFAULT_MAX_PAGE_FETCHES,
    DEFAULT_PAGINATION_LIMIT,
    DEFAULT_RATE_LIMIT_PER_SECOND,
    DEFAULT_READ_TIMEOUT_SECONDS,
    DEFAULT_REDIS_URL,
    DEFAULT_STORE_PATH,
    STORE_DRIVERS,
)
from .errors import SimproConfigError


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = (os.getenv(name) or "").strip()
    if not v:
        return default
    try:
        n = int(v)
        return n if n >= 0 else default
    except Exception:
        return default


def _env_opt_int(name: str) -> Optional[int]:
    v = (os.getenv(name) or "").strip()
    if not v:
        return None
    try:
        n = int(v)
    except Exception:
        return None
    return n if n >= 0 else None


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


@dataclass(frozen=True)
class RateLimitSettings:
    enabled: bool = True
    per_second: int = DEFAULT_RATE_LIMIT_PER_SECOND
    # Call count within a window at which pre-emptive sleeping begins (<= per_second).
    threshold: Optional[int] = None
    driver: str = "memory"
    prefix: str = DEFAULT_LIMITER_PREFIX
    # None = keep backing off on 429 forever (the connector's historic behaviour).
    max_retries: Optional[int] = None

    @property
    def effective_threshold(self) -> int:
        return self.per_second if self.threshold is None else self.threshold

    def validate(self) -> None:
        if self.per_second <= 0:
            raise SimproConfigError("rate_limit.per_second must be > 0")
        if not 0 < self.effective_threshold <= self.per_second:
            raise SimproConfigError(
                f"rate_limit.threshold must be in 1..{self.per_second}, got {self.effective_threshold}"
            )
        if self.driver not in STORE_DRIVERS:
            raise SimproConfigError(f"Unknown rate_limit.driver {self.driver!r} (expected one of {STORE_DRIVERS})")
        if self.max_retries is not None and self.max_retries < 0:
            raise SimproConfigError("rate_limit.max_retries must be >= 0")


@dataclass(frozen=True)
class CacheSettings:
    enabled: bool = True
    expire: int = DEFAULT_CACHE_EXPIRE_SECONDS
    driver: str = "memory"

    @property
    def expiry_seconds(self) -> int:
        # enabled=False and expire=0 both mean "never store".
        if not self.enabled:
            return 0
        return max(0, int(self.expire))

    def validate(self) -> None:
        if self.driver not in STORE_DRIVERS:
            raise SimproConfigError(f"Unknown cache.driver {self.driver!r} (expected one of {STORE_DRIVERS})")


@dataclass(frozen=True)
class SimproConfig:
    # Auth (secret): MUST remain env/creds-driven
    base_url: str
    api_key: str

    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)

    # Pagination
    detect_infinite_loops: bool = True
    default_pagination_limit: Optional[int] = DEFAULT_PAGINATION_LIMIT
    max_page_fetches: int = DEFAULT_MAX_PAGE_FETCHES

    # Shared store locations (file / redis drivers)
    store_path: str = DEFAULT_STORE_PATH
    redis_url: str = DEFAULT_REDIS_URL

    # Request knobs used by the requests transport
    request_connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    request_timeout_s: float = DEFAULT_READ_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not (self.base_url or "").strip():
            raise SimproConfigError("Simpro base_url is required (e.g. https://acme.simprosuite.com)")
        if not (self.api_key or "").strip():
            raise SimproConfigError("Simpro api_key is required")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        self.rate_limit.validate()
        self.cache.validate()
        if self.max_page_fetches <= 0:
            raise SimproConfigError("max_page_fetches must be > 0")
        if self.default_pagination_limit is not None and self.default_pagination_limit <= 0:
            raise SimproConfigError("default_pagination_limit must be > 0 (or None to let the server decide)")

    @staticmethod
    def from_env_and_creds(creds: Optional[Mapping[str, Any]] = None) -> "SimproConfig":
        creds = creds or {}
        base_url = (
            creds.get("base_url")
            or creds.get("SIMPRO_BASE_URL")
            or os.getenv("SIMPRO_BASE_URL")
            or ""
        )
        api_key = (
            creds.get("api_key")
            or creds.get("access_token")
            or creds.get("SIMPRO_API_KEY")
            or os.getenv("SIMPRO_API_KEY")
            or ""
        )

        per_second = _env_int("SIMPRO_RATE_LIMIT_PER_SECOND", DEFAULT_RATE_LIMIT_PER_SECOND) or DEFAULT_RATE_LIMIT_PER_SECOND
        page_limit = _env_int("SIMPRO_DEFAULT_PAGINATION_LIMIT", DEFAULT_PAGINATION_LIMIT)

        return SimproConfig(
            base_url=str(base_url),
            api_key=str(api_key),
            rate_limit=RateLimitSettings(
                enabled=_env_bool("SIMPRO_RATE_LIMIT_ENABLED", True),
                per_second=per_second,
                threshold=_env_opt_int("SIMPRO_RATE_LIMIT_THRESHOLD"),
                driver=_env_str("SIMPRO_RATE_LIMIT_DRIVER", "memory").lower(),
                prefix=_env_str("SIMPRO_RATE_LIMIT_PREFIX", DEFAULT_LIMITER_PREFIX),
                max_retries=_env_opt_int("SIMPRO_RATE_LIMIT_MAX_RETRIES"),
            ),
            cache=CacheSettings(
                enabled=_env_bool("SIMPRO_CACHE_ENABLED", True),
                expire=_env_int("SIMPRO_CACHE_EXPIRE", DEFAULT_CACHE_EXPIRE_SECONDS),
                driver=_env_str("SIMPRO_CACHE_DRIVER", "memory").lower(),
            ),
            detect_infinite_loops=_env_bool("SIMPRO_DETECT_INFINITE_LOOPS", True),
            default_pagination_limit=page_limit or None,
            max_page_fetches=_env_int("SIMPRO_MAX_PAGE_FETCHES", DEFAULT_MAX_PAGE_FETCHES) or DEFAULT_MAX_PAGE_FETCHES,
            store_path=_env_str("SIMPRO_STORE_PATH", DEFAULT_STORE_PATH),
            redis_url=_env_str("SIMPRO_REDIS_URL", DEFAULT_REDIS_URL),
            request_connect_timeout_s=float(_env_int("SIMPRO_REQUEST_CONNECT_TIMEOUT_S", int(DEFAULT_CONNECT_TIMEOUT_SECONDS))),
            request_timeout_s=float(_env_int("SIMPRO_REQUEST_TIMEOUT_S", int(DEFAULT_READ_TIMEOUT_SECONDS))),
        )
