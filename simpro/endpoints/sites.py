from __future__ import annotations

from typing import Any, Mapping

from ..models import RequestDescriptor
from ._base import company_path, delete, get, get_list, patch


def list_sites(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "sites", collection=True))


def retrieve_site(company_id: int, site_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "sites", site_id))


def list_site_assets(company_id: int, site_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "sites", site_id, "assets", collection=True))


def update_site_attachment(company_id: int, site_id: int, file_id: str, data: Mapping[str, Any]) -> RequestDescriptor:
    return patch(company_path(company_id, "sites", site_id, "attachments", "files", file_id), data)


def update_site_attachment_folder(
    company_id: int, site_id: int, folder_id: int, data: Mapping[str, Any]
) -> RequestDescriptor:
    return patch(company_path(company_id, "sites", site_id, "attachments", "folders", folder_id), data)


def retrieve_site_custom_field(company_id: int, site_id: int, custom_field_id: int) -> RequestDescriptor:
    return get(company_path(company_id, "sites", site_id, "customFields", custom_field_id))


def delete_site_asset_attachment_folder(
    company_id: int, site_id: int, asset_id: int, folder_id: int
) -> RequestDescriptor:
    return delete(
        company_path(company_id, "sites", site_id, "assets", asset_id, "attachments", "folders", folder_id)
    )
