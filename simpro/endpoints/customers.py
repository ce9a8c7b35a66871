from __future__ import annotations

from typing import Any, Mapping

from ..models import RequestDescriptor
from ._base import company_path, get, get_list, patch


def list_customers(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "customers", collection=True))


def list_customer_companies(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "customers", "companies", collection=True))


def list_customer_individuals(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "customers", "individuals", collection=True))


def retrieve_customer_company(company_id: int, customer_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "customers", "companies", customer_id))


def list_customer_custom_fields(company_id: int, customer_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "customers", customer_id, "customFields", collection=True))


def update_customer_custom_field(
    company_id: int, customer_id: int, custom_field_id: int, data: Mapping[str, Any]
) -> RequestDescriptor:
    return patch(company_path(company_id, "customers", customer_id, "customFields", custom_field_id), data)


def get_customer_contract_custom_fields(company_id: int, customer_id: int, contract_id: int) -> RequestDescriptor:
    return get_list(
        company_path(company_id, "customers", customer_id, "contracts", contract_id, "customFields", collection=True)
    )


def update_customer_labour_rate(
    company_id: int, customer_id: int, labour_rate_id: int, data: Mapping[str, Any]
) -> RequestDescriptor:
    return patch(company_path(company_id, "customers", customer_id, "labourRates", labour_rate_id), data)


def update_customer_labor_rate(
    company_id: int, customer_id: int, labor_rate_id: int, data: Mapping[str, Any]
) -> RequestDescriptor:
    # US spelling of the same resource; Simpro serves both paths.
    return patch(company_path(company_id, "customers", customer_id, "laborRates", labor_rate_id), data)
