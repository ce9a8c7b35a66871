"""
Simpro API connector.

Public convenience exports so callers can write:
  from simpro import SimproConfig, SimproConnector
  from simpro.endpoints import customers

  with SimproConnector(SimproConfig.from_env_and_creds({})) as conn:
      for page in conn.paginate(customers.list_customers(0)):
          ...
"""
from __future__ import annotations

from simpro.cache import CacheEntry, CacheLayer, fingerprint  # noqa: F401
from simpro.config import CacheSettings, RateLimitSettings, SimproConfig  # noqa: F401
from simpro.connector import SimproConnector  # noqa: F401
from simpro.errors import (  # noqa: F401
    HttpError,
    InfiniteLoopDetected,
    PaginationContractViolation,
    PaginationNotStarted,
    RateLimitExceeded,
    SimproConfigError,
    SimproError,
)
from simpro.models import RequestDescriptor, ResponseEnvelope  # noqa: F401
from simpro.paging import PagedPaginator, PaginationPhase, PaginationState  # noqa: F401
from simpro.rate_limit import RateLimiter  # noqa: F401

__all__ = [
    "CacheEntry",
    "CacheLayer",
    "CacheSettings",
    "HttpError",
    "InfiniteLoopDetected",
    "PagedPaginator",
    "PaginationContractViolation",
    "PaginationNotStarted",
    "PaginationPhase",
    "PaginationState",
    "RateLimitExceeded",
    "RateLimitSettings",
    "RateLimiter",
    "RequestDescriptor",
    "ResponseEnvelope",
    "SimproConfig",
    "SimproConfigError",
    "SimproConnector",
    "SimproError",
    "fingerprint",
]
