"""Database models."""

from jzapi.models.user import User
from jzapi.models.api_key import ApiKey, ApiKeyStatus
from jzapi.models.usage_log import UsageLog
from jzapi.models.api_endpoint import ApiEndpoint, EndpointStatus
from jzapi.models.system_setting import SystemSetting
from jzapi.models.admin_audit_log import AdminAuditLog

__all__ = [
    "User",
    "ApiKey",
    "ApiKeyStatus",
    "UsageLog",
    "ApiEndpoint",
    "EndpointStatus",
    "SystemSetting",
    "AdminAuditLog",
]
