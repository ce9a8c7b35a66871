"""
SimproConnector: the single path every Simpro API call goes through.

Per request:
  resolve URL + headers + bearer auth
    → cache lookup (GET only, when caching is enabled)
    → rate-limit gate (sleeps, never drops)
    → transport
    → 429: cooldown + retry / other non-2xx: HttpError
    → cache populate

Collaborators are injected (or built once from SimproConfig): Transport, RateLimiter,
CacheLayer, Authenticator. The connector keeps no locks; use one instance per thread.
"""
from __future__ import annotations

import random
import time
from typing import Any, Callable, Dict, Mapping, Optional

from .auth import Authenticator, TokenAuthenticator, default_headers
from .cache import CacheLayer, fingerprint
from .config import SimproConfig
from .constants import API_VERSION_PATH
from .errors import HttpError, RateLimitExceeded
from .events import request_event
from .models import RequestDescriptor, ResponseEnvelope
from .paging import PagedPaginator
from .rate_limit import RateLimiter
from .transport import RequestsTransport, Transport

_UNSET: Any = object()


class SimproConnector:
    def __init__(
        self,
        config: SimproConfig,
        *,
        transport: Optional[Transport] = None,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[CacheLayer] = None,
        authenticator: Optional[Authenticator] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.authenticator: Authenticator = authenticator or TokenAuthenticator(config.api_key)
        self.transport: Transport = transport or RequestsTransport.from_config(config)

        if rate_limiter is None and config.rate_limit.enabled:
            rate_limiter = RateLimiter.from_config(config, clock=clock, sleep=sleep, rng=rng)
        self.rate_limiter: Optional[RateLimiter] = rate_limiter

        self.cache: CacheLayer = cache if cache is not None else CacheLayer.from_config(config, clock=clock)

    # -----------------------------
    # Resolution
    # -----------------------------
    def resolve_base_url(self) -> str:
        return f"{self.config.base_url}{API_VERSION_PATH}"

    def resolve_url(self, request: RequestDescriptor) -> str:
        return f"{self.resolve_base_url()}/{request.endpoint.lstrip('/')}"

    def build_headers(self) -> Dict[str, str]:
        headers = default_headers()
        self.authenticator.apply(headers)
        return headers

    def fingerprint(self, request: RequestDescriptor) -> str:
        return fingerprint(request.method, self.resolve_url(request), request.query, request.body)

    # -----------------------------
    # Send
    # -----------------------------
    def send(
        self,
        request: RequestDescriptor,
        *,
        use_cache: bool = True,
        invalidate_cache: bool = False,
    ) -> ResponseEnvelope:
        """
        Execute one request. Raises HttpError for any non-2xx response other than a
        429 that the rate limiter absorbed; transport errors propagate unchanged.
        """
        url = self.resolve_url(request)
        cacheable = use_cache and self.cache.enabled and self.cache.is_cacheable(request.method)
        fp = self.fingerprint(request) if (cacheable or invalidate_cache) else None

        if invalidate_cache and fp is not None:
            self.cache.forget(fp)
        elif cacheable and fp is not None:
            entry = self.cache.get(fp)
            if entry is not None:
                request_event("http.request.cache_hit", request, url, expires_at=entry.expires_at)
                return ResponseEnvelope.from_payload(entry.payload, cached=True)

        resp = self._dispatch(request, url)

        if cacheable and fp is not None and resp.ok:
            self.cache.put(fp, resp.to_payload())
        return resp

    def _dispatch(self, request: RequestDescriptor, url: str) -> ResponseEnvelope:
        headers = self.build_headers()
        pending_delay: Optional[float] = None
        retries = 0

        while True:
            if self.rate_limiter is not None:
                self.rate_limiter.acquire(stream=request.endpoint)

            request_event("http.request.start", request, url, attempt=retries, params=dict(request.query))

            t0 = time.monotonic()
            try:
                resp = self.transport.send(
                    request.method,
                    url,
                    headers=headers,
                    params=request.query,
                    json_body=request.json_body(),
                )
            except Exception as e:
                request_event(
                    "http.request.error",
                    request,
                    url,
                    level="error",
                    attempt=retries,
                    elapsed_ms=int((time.monotonic() - t0) * 1000),
                    error=repr(e)[:2000],
                )
                raise
            elapsed_ms = int((time.monotonic() - t0) * 1000)

            if resp.status == 429:
                if self.rate_limiter is None:
                    request_event("http.request.error", request, url, level="error", status=429)
                    raise RateLimitExceeded(
                        f"HTTP 429 for {request.method} {request.endpoint} (rate limiting disabled)",
                        response=resp,
                        request=request,
                    )

                retries += 1
                if self.rate_limiter.retries_exhausted(retries):
                    request_event("http.request.error", request, url, level="error", status=429, retries=retries - 1)
                    raise RateLimitExceeded(
                        f"HTTP 429 for {request.method} {request.endpoint}: still limited after {retries - 1} retries",
                        response=resp,
                        request=request,
                        retries=retries - 1,
                    )

                pending_delay = self.rate_limiter.backoff(
                    pending_delay, attempt=retries, stream=request.endpoint, url=url
                )
                continue

            if not resp.ok:
                request_event(
                    "http.request.error",
                    request,
                    url,
                    level="error",
                    attempt=retries,
                    status=resp.status,
                    elapsed_ms=elapsed_ms,
                    body_preview=resp.text()[:500],
                )
                raise HttpError.from_response(resp, request)

            request_event(
                "http.request.ok",
                request,
                url,
                attempt=retries,
                status=resp.status,
                elapsed_ms=elapsed_ms,
                bytes=len(resp.body),
            )
            return resp

    def send_json(self, request: RequestDescriptor, **kwargs: Any) -> Any:
        return self.send(request, **kwargs).json()

    # -----------------------------
    # Convenience verbs
    # -----------------------------
    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Any:
        return self.send_json(RequestDescriptor("GET", endpoint, query=params or {}), **kwargs)

    def post(self, endpoint: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        return self.send_json(RequestDescriptor("POST", endpoint, body=body or {}))

    def patch(self, endpoint: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        return self.send_json(RequestDescriptor("PATCH", endpoint, body=body or {}))

    def put(self, endpoint: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        return self.send_json(RequestDescriptor("PUT", endpoint, body=body or {}))

    def delete(self, endpoint: str) -> Any:
        return self.send_json(RequestDescriptor("DELETE", endpoint))

    # -----------------------------
    # Pagination
    # -----------------------------
    def paginate(
        self,
        request: RequestDescriptor,
        *,
        per_page_limit: Optional[int] = _UNSET,
        max_pages: Optional[int] = None,
        **hooks: Any,
    ) -> PagedPaginator:
        """
        Page through a paginatable request. `per_page_limit=None` omits pageSize and
        lets the server pick; by default the configured default_pagination_limit is sent.
        """
        if per_page_limit is _UNSET:
            per_page_limit = self.config.default_pagination_limit
        return PagedPaginator(
            self,
            request,
            per_page_limit=per_page_limit,
            detect_infinite_loop=self.config.detect_infinite_loops,
            max_page_fetches=self.config.max_page_fetches,
            max_pages=max_pages,
            **hooks,
        )

    # -----------------------------
    # Lifecycle
    # -----------------------------
    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "SimproConnector":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
