"""Endpoint catalog router."""

from fastapi import APIRouter

from jzapi.adapters import categories_by_slug
from jzapi.dependencies import ApiEndpointRepoDep
from jzapi.schemas.catalog import ApiCatalogResponse, ApiEndpointResponse

router = APIRouter()


@router.get("/apis", response_model=ApiCatalogResponse)
async def list_apis(endpoint_repo: ApiEndpointRepoDep) -> ApiCatalogResponse:
    """List proxied endpoints with their operational status."""
    categories = categories_by_slug()
    endpoints = await endpoint_repo.list_all()
    apis = [
        ApiEndpointResponse(
            slug=e.slug,
            name=e.name,
            path=e.path,
            category=categories.get(e.slug, "OTHER"),
            description=e.description,
            sample_query=e.sample_query,
            status=e.status,
            maintenance_note=e.maintenance_note,
        )
        for e in endpoints
    ]
    return ApiCatalogResponse(apis=apis, total=len(apis))
