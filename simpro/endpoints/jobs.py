from __future__ import annotations

from typing import Any, Mapping

from ..models import RequestDescriptor
from ._base import company_path, delete, get, get_list, patch


def list_jobs(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "jobs", collection=True))


def retrieve_job(company_id: int, job_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "jobs", job_id))


def list_job_attachments(company_id: int, job_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "jobs", job_id, "attachments", "files", collection=True))


def delete_job_attachment(company_id: int, job_id: int, attachment_id: str) -> RequestDescriptor:
    return delete(company_path(company_id, "jobs", job_id, "attachments", "files", attachment_id))


def delete_job_section_cost_center_labour(
    company_id: int, job_id: int, section_id: int, cost_center_id: int, labour_id: int
) -> RequestDescriptor:
    return delete(
        company_path(
            company_id, "jobs", job_id, "sections", section_id, "costCenters", cost_center_id, "labour", labour_id
        )
    )


def update_job_section_cost_center_work_order_asset(
    company_id: int,
    job_id: int,
    section_id: int,
    cost_center_id: int,
    work_order_id: int,
    asset_id: int,
    data: Mapping[str, Any],
) -> RequestDescriptor:
    return patch(
        company_path(
            company_id,
            "jobs",
            job_id,
            "sections",
            section_id,
            "costCenters",
            cost_center_id,
            "workOrders",
            work_order_id,
            "assets",
            asset_id,
        ),
        data,
    )
