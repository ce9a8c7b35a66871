from __future__ import annotations

from ..models import RequestDescriptor
from ._base import company_path, get, get_list


def list_asset_types(company_id: int) -> RequestDescriptor:
    return get_list(company_path(company_id, "setup", "assetTypes", collection=True))


def retrieve_asset_type_test_reading(
    company_id: int, asset_type_id: int, test_reading_id: int
) -> RequestDescriptor:
    return get(company_path(company_id, "setup", "assetTypes", asset_type_id, "testReadings", test_reading_id))
