"""Schemas for API key management."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CreateApiKeyRequest(BaseModel):
    """Request to issue an additional key."""

    label: Optional[str] = Field(None, max_length=40)
    daily_limit: Optional[int] = Field(None, gt=0, description="Capped by the plan's per-key limit")


class ApiKeyResponse(BaseModel):
    """A key with its usage; the secret value is masked."""

    id: UUID
    label: Optional[str] = None
    masked_key: str
    status: str
    daily_limit: int
    effective_limit: int
    used_today: int
    remaining_today: int
    total_requests: int
    created_at: Optional[datetime] = None


class ApiKeyListResponse(BaseModel):
    api_keys: list[ApiKeyResponse]
    can_create: bool
    max_keys: int
    max_limit_per_key: int


class CreatedApiKeyResponse(BaseModel):
    """Newly issued key. ``key`` is only ever returned here."""

    id: UUID
    user_id: UUID
    key: str
    label: Optional[str] = None
    status: str
    daily_limit: int
    created_at: Optional[datetime] = None


class CreateApiKeyResponse(BaseModel):
    message: str
    api_key: CreatedApiKeyResponse


class MessageResponse(BaseModel):
    message: str
