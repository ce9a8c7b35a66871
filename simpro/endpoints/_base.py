from __future__ import annotations

from typing import Any, Mapping, Optional

from ..models import RequestDescriptor


def company_path(company_id: int, *parts: Any, collection: bool = False) -> str:
    """'/companies/{id}/a/b'. Collections keep the trailing slash Simpro documents."""
    segs = ["companies", str(company_id), *(str(p).strip("/") for p in parts)]
    path = "/" + "/".join(segs)
    return path + "/" if collection else path


def get(endpoint: str, query: Optional[Mapping[str, Any]] = None) -> RequestDescriptor:
    return RequestDescriptor("GET", endpoint, query=query or {})


def get_list(endpoint: str, query: Optional[Mapping[str, Any]] = None) -> RequestDescriptor:
    return RequestDescriptor("GET", endpoint, query=query or {}, paginatable=True)


def post(endpoint: str, body: Mapping[str, Any]) -> RequestDescriptor:
    return RequestDescriptor("POST", endpoint, body=body)


def patch(endpoint: str, body: Mapping[str, Any]) -> RequestDescriptor:
    return RequestDescriptor("PATCH", endpoint, body=body)


def put(endpoint: str, body: Mapping[str, Any]) -> RequestDescriptor:
    return RequestDescriptor("PUT", endpoint, body=body)


def delete(endpoint: str) -> RequestDescriptor:
    return RequestDescriptor("DELETE", endpoint)
