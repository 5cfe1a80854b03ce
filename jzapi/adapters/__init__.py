"""Proxied endpoint adapters and the catalog they define."""

from functools import lru_cache

from jzapi.adapters.base import EndpointAdapter
from jzapi.adapters.country_time import CountryTimeAdapter
from jzapi.adapters.info_imei import InfoImeiAdapter
from jzapi.clients.upstream_client import UpstreamClient
from jzapi.config import get_settings


@lru_cache(maxsize=1)
def get_adapters() -> tuple[EndpointAdapter, ...]:
    """Create the singleton adapter set."""
    settings = get_settings()
    client = UpstreamClient(timeout=settings.upstream_timeout_seconds)
    return (
        CountryTimeAdapter(),
        InfoImeiAdapter(
            client=client,
            source_url=settings.imei_source_url,
            source_api_key=settings.imei_source_api_key,
        ),
    )


def catalog_definitions() -> list[dict[str, str]]:
    return [adapter.catalog_definition() for adapter in get_adapters()]


def categories_by_slug() -> dict[str, str]:
    return {adapter.slug: adapter.category for adapter in get_adapters()}


__all__ = [
    "EndpointAdapter",
    "CountryTimeAdapter",
    "InfoImeiAdapter",
    "get_adapters",
    "catalog_definitions",
    "categories_by_slug",
]
