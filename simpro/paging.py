"""
Page-cursor pagination for Simpro collection endpoints.

Simpro list endpoints take `page` / `pageSize` query params and report totals in the
`Result-Pages` and `Result-Total` response headers. A paginator drives the connector
one page per pull:

    fetch page N → yield its items → N += 1 → stop once N > Result-Pages

Iterating a paginator always rewinds it to page 1, so it can be consumed again.
Behaviour can be adjusted per call with hooks (is_last_page, apply_pagination,
extract_items, extract_total_pages, extract_total_results) instead of subclassing.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

from .constants import (
    DEFAULT_MAX_PAGE_FETCHES,
    PAGE_PARAM,
    PAGE_SIZE_PARAM,
    RESULT_PAGES_HEADER,
    RESULT_TOTAL_HEADER,
)
from .errors import InfiniteLoopDetected, PaginationContractViolation, PaginationNotStarted
from .events import info, records, warn
from .models import RequestDescriptor, ResponseEnvelope

if TYPE_CHECKING:
    from .connector import SimproConnector


class PaginationPhase(str, Enum):
    NOT_STARTED = "not_started"
    FETCHING = "fetching"
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"


@dataclass
class PaginationState:
    current_page: int = 1
    per_page_limit: Optional[int] = None
    total_pages: Optional[int] = None
    total_results: Optional[int] = None
    detect_infinite_loop: bool = True
    fetches: int = 0
    phase: PaginationPhase = PaginationPhase.NOT_STARTED


# -----------------------------
# Default hooks
# -----------------------------
def int_header(response: ResponseEnvelope, name: str) -> int:
    raw = response.header(name)
    if raw is None or not str(raw).strip():
        raise PaginationContractViolation(f"Page response is missing the {name} header")
    try:
        return int(str(raw).strip())
    except ValueError:
        raise PaginationContractViolation(f"Page response has a non-integer {name} header: {raw!r}") from None


def extract_total_pages(response: ResponseEnvelope) -> int:
    return int_header(response, RESULT_PAGES_HEADER)


def extract_total_results(response: ResponseEnvelope) -> int:
    return int_header(response, RESULT_TOTAL_HEADER)


def extract_items(response: ResponseEnvelope) -> List[Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise PaginationContractViolation(f"Page body is not JSON: {e}") from e
    if data is None:
        return []
    if not isinstance(data, list):
        raise PaginationContractViolation(f"Page body must be a JSON list, got {type(data).__name__}")
    return data


def apply_page_params(state: PaginationState, request: RequestDescriptor) -> RequestDescriptor:
    params: Dict[str, Any] = {PAGE_PARAM: state.current_page}
    if state.per_page_limit is not None:
        params[PAGE_SIZE_PARAM] = state.per_page_limit
    return request.with_query(**params)


def is_past_last_page(state: PaginationState, response: ResponseEnvelope) -> bool:
    return state.current_page > extract_total_pages(response)


# -----------------------------
# Paginator
# -----------------------------
class PagedPaginator:
    def __init__(
        self,
        connector: "SimproConnector",
        request: RequestDescriptor,
        *,
        per_page_limit: Optional[int] = None,
        detect_infinite_loop: bool = True,
        max_page_fetches: int = DEFAULT_MAX_PAGE_FETCHES,
        max_pages: Optional[int] = None,
        is_last_page: Callable[[PaginationState, ResponseEnvelope], bool] = is_past_last_page,
        apply_pagination: Callable[[PaginationState, RequestDescriptor], RequestDescriptor] = apply_page_params,
        extract_items: Callable[[ResponseEnvelope], List[Any]] = extract_items,
        extract_total_pages: Callable[[ResponseEnvelope], int] = extract_total_pages,
        extract_total_results: Callable[[ResponseEnvelope], int] = extract_total_results,
    ) -> None:
        if not request.paginatable:
            raise PaginationContractViolation(
                f"{request.method} {request.endpoint} is not paginatable (no page/pageSize contract)"
            )
        if per_page_limit is not None and per_page_limit <= 0:
            raise ValueError("per_page_limit must be > 0")

        self.connector = connector
        self.request = request
        self.per_page_limit = per_page_limit
        self.detect_infinite_loop = detect_infinite_loop
        self.max_page_fetches = int(max_page_fetches)
        self.max_pages = max_pages

        self._is_last_page = is_last_page
        self._apply_pagination = apply_pagination
        self._extract_items = extract_items
        self._extract_total_pages = extract_total_pages
        self._extract_total_results = extract_total_results

        self.state = PaginationState()
        self.current_response: Optional[ResponseEnvelope] = None
        self.rewind()

    # -----------------------------
    # State
    # -----------------------------
    def rewind(self) -> None:
        self.state = PaginationState(
            current_page=1,
            per_page_limit=self.per_page_limit,
            detect_infinite_loop=self.detect_infinite_loop,
        )
        self.current_response = None

    @property
    def current_page(self) -> int:
        return self.state.current_page

    @property
    def phase(self) -> PaginationPhase:
        return self.state.phase

    def is_last_page(self, response: ResponseEnvelope) -> bool:
        return self._is_last_page(self.state, response)

    def apply_pagination(self, request: RequestDescriptor) -> RequestDescriptor:
        return self._apply_pagination(self.state, request)

    def get_page_items(self, response: ResponseEnvelope) -> List[Any]:
        return self._extract_items(response)

    def _require_response(self) -> ResponseEnvelope:
        if self.current_response is None:
            raise PaginationNotStarted("No page has been fetched yet")
        return self.current_response

    def get_total_pages(self) -> int:
        return self._extract_total_pages(self._require_response())

    def get_total_results(self) -> int:
        return self._extract_total_results(self._require_response())

    # -----------------------------
    # Iteration
    # -----------------------------
    def _fetch(self, state: PaginationState) -> ResponseEnvelope:
        if state.detect_infinite_loop and state.fetches >= self.max_page_fetches:
            raise InfiniteLoopDetected(state.fetches + 1, self.max_page_fetches, self.request.endpoint)

        state.phase = PaginationPhase.FETCHING
        req = self.apply_pagination(self.request)
        info(
            "paging.page.start",
            stream=self.request.endpoint,
            page=state.current_page,
            limit=state.per_page_limit,
            total_pages=state.total_pages,
        )
        resp = self.connector.send(req)
        state.fetches += 1
        self.current_response = resp

        state.total_pages = self._extract_total_pages(resp)
        try:
            state.total_results = self._extract_total_results(resp)
        except PaginationContractViolation:
            # Only Result-Pages drives progression; Result-Total is checked when asked for.
            state.total_results = None
        return resp

    def pages(self) -> Iterator[List[Any]]:
        """Yield one list of items per page, lazily, starting from page 1."""
        self.rewind()
        pages_yielded = 0

        while True:
            state = self.state
            if self.max_pages is not None and pages_yielded >= self.max_pages:
                warn("paging.max_pages_reached", stream=self.request.endpoint, page=state.current_page, max_pages=self.max_pages)
                state.phase = PaginationPhase.EXHAUSTED
                return

            resp = self._fetch(state)
            items = self.get_page_items(resp)
            records(self.request.endpoint, len(items))

            pages_yielded += 1
            yield items

            if state is not self.state:
                # rewound while suspended: restart from page 1
                pages_yielded = 0
                continue

            state.current_page += 1
            if self.is_last_page(resp):
                state.phase = PaginationPhase.EXHAUSTED
                info(
                    "paging.done.last_page",
                    stream=self.request.endpoint,
                    pages=state.fetches,
                    total_results=state.total_results,
                )
                return
            state.phase = PaginationPhase.HAS_MORE

    def __iter__(self) -> Iterator[List[Any]]:
        return self.pages()

    def items(self) -> Iterator[Any]:
        for page in self.pages():
            yield from page

    def collect(self) -> List[Any]:
        return list(self.items())
