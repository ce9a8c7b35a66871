from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from .constants import HTTP_METHODS


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class RequestDescriptor:
    """
    One logical API call: verb + interpolated endpoint + query + optional JSON body.

    - endpoint: path below the API root, e.g. "/companies/0/customers/"
    - query: ordered, unique keys; later `with_query` values replace earlier ones
    - paginatable: the endpoint answers in pages (page/pageSize + Result-* headers)
    """
    method: str
    endpoint: str
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Optional[Mapping[str, Any]] = None
    paginatable: bool = False

    def __post_init__(self) -> None:
        method = str(self.method or "").upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "query", _freeze(self.query))
        if self.body is not None:
            object.__setattr__(self, "body", _freeze(self.body))

    def with_query(self, **params: Any) -> "RequestDescriptor":
        merged: Dict[str, Any] = dict(self.query)
        merged.update(params)
        return replace(self, query=merged)

    def json_body(self) -> Optional[Dict[str, Any]]:
        return dict(self.body) if self.body is not None else None


@dataclass(frozen=True)
class ResponseEnvelope:
    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    cached: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CaseInsensitiveDict):
            object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers or {}))

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace") if self.body else ""

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.body)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe form used by the cache stores."""
        return {
            "status": self.status,
            "headers": dict(self.headers),
            # base64 keeps non-UTF-8 bodies byte-exact through JSON stores
            "body": base64.b64encode(self.body).decode("ascii"),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, cached: bool = False) -> "ResponseEnvelope":
        return cls(
            status=int(payload["status"]),
            headers=CaseInsensitiveDict(payload.get("headers") or {}),
            body=base64.b64decode(payload.get("body") or ""),
            cached=cached,
        )
