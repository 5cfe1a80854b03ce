"""Endpoint catalog schemas."""

from typing import Optional

from pydantic import BaseModel


class ApiEndpointResponse(BaseModel):
    slug: str
    name: str
    path: str
    category: str
    description: str
    sample_query: str
    status: str
    maintenance_note: Optional[str] = None


class ApiCatalogResponse(BaseModel):
    apis: list[ApiEndpointResponse]
    total: int
