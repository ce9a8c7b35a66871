from __future__ import annotations

_CONNECTOR_NAME = "simpro"

API_VERSION_PATH = "/api/v1.0"

# Pagination headers
RESULT_TOTAL_HEADER = "Result-Total"
RESULT_PAGES_HEADER = "Result-Pages"
PAGE_PARAM = "page"
PAGE_SIZE_PARAM = "pageSize"

# Pagination defaults / caps (safety)
DEFAULT_PAGINATION_LIMIT = 30
DEFAULT_MAX_PAGE_FETCHES = 10000

# Rate limit window + 429 cooldown
RATE_LIMIT_WINDOW_SECONDS = 1.0
DEFAULT_RATE_LIMIT_PER_SECOND = 10
DEFAULT_LIMITER_PREFIX = "simpro"
COOLDOWN_BASE_SECONDS = 60.0
COOLDOWN_MAX_JITTER_SECONDS = 60.0

# Cache
DEFAULT_CACHE_EXPIRE_SECONDS = 300
CACHE_KEY_PREFIX = "simpro:cache"
CACHEABLE_METHODS = frozenset({"GET"})

# Stores
STORE_DRIVERS = ("memory", "file", "redis")
DEFAULT_STORE_PATH = ".simpro_store"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# HTTP
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_READ_TIMEOUT_SECONDS = 60.0
USER_AGENT = "simpro-connector/1.0"
HTTP_METHODS = ("GET", "POST", "PATCH", "DELETE", "PUT")
