from __future__ import annotations

from ..models import RequestDescriptor
from ._base import company_path, get, get_list


def list_companies() -> RequestDescriptor:
    return get_list("/companies/")


def retrieve_company(company_id: int) -> RequestDescriptor:
    return get(company_path(company_id))
