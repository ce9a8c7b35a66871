from __future__ import annotations

from ..models import RequestDescriptor
from ._base import company_path, get, get_list


def list_employees(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "employees", collection=True))


def retrieve_employee(company_id: int, employee_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "employees", employee_id))
