"""API routers."""

from jzapi.routers import account, admin, api_keys, catalog, health, proxy

__all__ = ["account", "admin", "api_keys", "catalog", "health", "proxy"]
