from __future__ import annotations

from typing import Any, Mapping

from ..models import RequestDescriptor
from ._base import company_path, delete, get, get_list, patch, post


def _cost_center(company_id: int, quote_id: int, section_id: int, cost_center_id: int, *parts: Any) -> str:
    return company_path(company_id, "quotes", quote_id, "sections", section_id, "costCenters", cost_center_id, *parts)


def list_quotes(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "quotes", collection=True))


def retrieve_quote(company_id: int, quote_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "quotes", quote_id), {"display": "all"})


def retrieve_quote_section_cost_center_asset(
    company_id: int, quote_id: int, section_id: int, cost_center_id: int, asset_id: int
) -> RequestDescriptor:
    return get(_cost_center(company_id, quote_id, section_id, cost_center_id, "assets", asset_id))


def create_quote_section_cost_center_catalogue(
    company_id: int, quote_id: int, section_id: int, data: Mapping[str, Any]
) -> RequestDescriptor:
    return post(
        company_path(company_id, "quotes", quote_id, "sections", section_id, "costCenters", "catalogs", collection=True),
        data,
    )


def update_quote_section_cost_center_contractor_job(
    company_id: int,
    quote_id: int,
    section_id: int,
    cost_center_id: int,
    contractor_job_id: int,
    data: Mapping[str, Any],
) -> RequestDescriptor:
    return patch(
        _cost_center(company_id, quote_id, section_id, cost_center_id, "contractorJobs", contractor_job_id),
        data,
    )


def retrieve_quote_section_cost_center_one_off(
    company_id: int, quote_id: int, section_id: int, cost_center_id: int, one_off_id: int
) -> RequestDescriptor:
    return get(_cost_center(company_id, quote_id, section_id, cost_center_id, "oneOffs", one_off_id))


def delete_quote_section_cost_center_prebuild(
    company_id: int, quote_id: int, section_id: int, cost_center_id: int, prebuild_id: int
) -> RequestDescriptor:
    return delete(_cost_center(company_id, quote_id, section_id, cost_center_id, "prebuilds", prebuild_id))
