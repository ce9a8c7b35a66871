"""
Endpoint descriptors: one small factory per Simpro API endpoint.

Each factory only interpolates path parameters and returns a RequestDescriptor
(verb + endpoint + optional default query / JSON body). All behaviour lives in the
connector; list endpoints are marked paginatable so `connector.paginate()` accepts them.

  from simpro.endpoints import customers
  req = customers.list_customers(company_id=0)
  for page in connector.paginate(req):
      ...
"""
from __future__ import annotations

from . import companies, customers, employees, jobs, quotes, setup, sites  # noqa: F401
from ._base import company_path, delete, get, get_list, patch, post, put  # noqa: F401

__all__ = [
    "companies",
    "customers",
    "employees",
    "jobs",
    "quotes",
    "setup",
    "sites",
    "company_path",
    "get",
    "get_list",
    "post",
    "patch",
    "put",
    "delete",
]
