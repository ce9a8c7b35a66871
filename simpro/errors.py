from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import RequestDescriptor, ResponseEnvelope


class SimproError(Exception):
    pass


class SimproConfigError(SimproError):
    """Missing credentials, unknown store driver or an invalid limit."""


class HttpError(SimproError):
    """Non-2xx response. Not retried."""

    def __init__(
        self,
        message: str,
        *,
        response: Optional["ResponseEnvelope"] = None,
        request: Optional["RequestDescriptor"] = None,
    ):
        super().__init__(message)
        self.response = response
        self.request = request

    @property
    def status(self) -> Optional[int]:
        return self.response.status if self.response is not None else None

    @classmethod
    def from_response(cls, response: "ResponseEnvelope", request: "RequestDescriptor") -> "HttpError":
        preview = response.text()[:500]
        return cls(
            f"HTTP {response.status} for {request.method} {request.endpoint}: {preview}",
            response=response,
            request=request,
        )


class RateLimitExceeded(HttpError):
    """429 Too Many Requests that was not (or could no longer be) absorbed by backoff."""

    def __init__(self, message: str, *, retries: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.retries = retries


class PaginationContractViolation(SimproError):
    """Request is not paginatable, or a page response lacks the expected headers/body."""


class PaginationNotStarted(SimproError):
    """Totals were asked for before any page was fetched."""


class InfiniteLoopDetected(SimproError):
    def __init__(self, fetches: int, max_fetches: int, endpoint: str):
        super().__init__(
            f"Pagination of {endpoint} exceeded {max_fetches} page fetches ({fetches}). "
            "The server never reported a last page."
        )
        self.fetches = fetches
        self.max_fetches = max_fetches
        self.endpoint = endpoint
