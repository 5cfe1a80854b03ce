"""Repository layer for data access."""

from jzapi.repositories.user_repository import UserRepository
from jzapi.repositories.api_key_repository import ApiKeyRepository
from jzapi.repositories.usage_log_repository import UsageLogRepository
from jzapi.repositories.api_endpoint_repository import ApiEndpointRepository
from jzapi.repositories.system_setting_repository import SystemSettingRepository
from jzapi.repositories.audit_log_repository import AuditLogRepository

__all__ = [
    "UserRepository",
    "ApiKeyRepository",
    "UsageLogRepository",
    "ApiEndpointRepository",
    "SystemSettingRepository",
    "AuditLogRepository",
]
