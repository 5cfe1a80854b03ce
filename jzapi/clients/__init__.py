"""External API clients."""

from jzapi.clients.upstream_client import UpstreamClient

__all__ = ["UpstreamClient"]
