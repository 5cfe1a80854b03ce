"""Public marketplace endpoints, one GET route per adapter."""

from typing import Iterable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from jzapi.adapters import EndpointAdapter, get_adapters
from jzapi.dependencies import ProxyServiceDep

router = APIRouter()


def _make_handler(adapter: EndpointAdapter):
    async def handler(request: Request, proxy: ProxyServiceDep) -> JSONResponse:
        envelope = await proxy.handle(adapter, request.query_params)
        return JSONResponse(status_code=envelope.code, content=envelope.render())

    handler.__name__ = f"proxy_{adapter.slug.replace('-', '_')}"
    handler.__doc__ = adapter.description
    return handler


def register_adapter_routes(target: APIRouter, adapters: Iterable[EndpointAdapter]) -> None:
    for adapter in adapters:
        target.add_api_route(
            adapter.path,
            _make_handler(adapter),
            methods=["GET"],
            name=adapter.slug,
            summary=adapter.name,
        )


register_adapter_routes(router, get_adapters())
