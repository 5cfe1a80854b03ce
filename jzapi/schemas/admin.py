"""Superadmin operation schemas."""

from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# 100 years
MAX_BAN_MINUTES = 525_600 * 100


def _clean_reason(value: str) -> str:
    value = value.strip()
    if len(value) < 8:
        raise ValueError("Reason must be at least 8 characters.")
    if len(value) > 180:
        raise ValueError("Reason is too long.")
    return value


class AdminActionRequest(BaseModel):
    """Base for every audited admin mutation."""

    reason: str = Field(..., description="Why the action is taken; stored in the audit trail")

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: str) -> str:
        return _clean_reason(value)


class UpdateUserRequest(AdminActionRequest):
    plan: Optional[Literal["FREE", "PAID", "RESELLER"]] = None
    role: Optional[Literal["USER", "SUPERADMIN"]] = None
    is_blocked: Optional[bool] = None
    ban_time_minutes: Optional[int] = Field(
        None,
        le=MAX_BAN_MINUTES,
        description="-1 for a permanent block, otherwise minutes > 0",
    )
    ban_reason: Optional[str] = Field(None, max_length=180)
    referral_bonus_daily: Optional[int] = Field(None, ge=0, le=100_000)

    @field_validator("ban_time_minutes")
    @classmethod
    def validate_ban_time(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value != -1 and value <= 0:
            raise ValueError("ban_time_minutes must be -1 or a positive number of minutes.")
        return value


class AdminUserResponse(BaseModel):
    id: str
    email: str
    plan: str
    role: str
    is_blocked: bool
    blocked_at: Optional[str] = None
    ban_until: Optional[str] = None
    ban_reason: Optional[str] = None
    referral_bonus_daily: int


class AdminCreateApiKeyRequest(AdminActionRequest):
    label: Optional[str] = Field(None, max_length=40)
    daily_limit: Optional[int] = Field(None, gt=0)


class UpdateApiKeyRequest(AdminActionRequest):
    status: Optional[Literal["ACTIVE", "REVOKED"]] = None
    daily_limit: Optional[int] = Field(None, gt=0)
    label: Optional[str] = Field(None, max_length=40)


class BulkRevokeApiKeysRequest(AdminActionRequest):
    api_key_ids: list[UUID] = Field(..., min_length=1, max_length=200)


class BulkRevokeResponse(BaseModel):
    message: str
    selected_count: int
    revoked_count: int


class AdminApiKeyResponse(BaseModel):
    id: str
    user_id: str
    label: Optional[str] = None
    masked_key: str
    status: str
    daily_limit: int


class UpdateApiEndpointRequest(AdminActionRequest):
    status: Literal["ACTIVE", "NON_ACTIVE", "MAINTENANCE"]
    maintenance_note: Optional[str] = Field(None, max_length=500)


class AdminApiEndpointResponse(BaseModel):
    slug: str
    name: str
    path: str
    status: str
    maintenance_note: Optional[str] = None


class UpdateSettingRequest(AdminActionRequest):
    value: Any


class SettingResponse(BaseModel):
    key: str
    value: Any


class SettingsResponse(BaseModel):
    settings: dict[str, Any]
    defaults: dict[str, Any]
