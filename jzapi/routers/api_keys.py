"""Self-service API key router."""

from uuid import UUID

from fastapi import APIRouter, status

from jzapi.dependencies import ActiveUser, ApiKeyServiceDep, DbSession, SystemSettingsDep
from jzapi.plans import api_key_create_rule
from jzapi.schemas.api_keys import (
    ApiKeyListResponse,
    ApiKeyResponse,
    CreateApiKeyRequest,
    CreateApiKeyResponse,
    CreatedApiKeyResponse,
    MessageResponse,
)

router = APIRouter(prefix="/api-keys", tags=["API Keys"])


@router.get("", response_model=ApiKeyListResponse)
async def list_api_keys(
    user: ActiveUser,
    service: ApiKeyServiceDep,
    settings: SystemSettingsDep,
) -> ApiKeyListResponse:
    """List the caller's keys with today's usage and all-time totals."""
    rule = api_key_create_rule(user.plan, user.role, settings)
    rows = await service.list_with_usage(user)
    return ApiKeyListResponse(
        api_keys=[
            ApiKeyResponse(
                id=row.api_key.id,
                label=row.api_key.label,
                masked_key=row.api_key.masked_key,
                status=row.api_key.status,
                daily_limit=row.api_key.daily_limit,
                effective_limit=row.effective_limit,
                used_today=row.used_today,
                remaining_today=row.remaining_today,
                total_requests=row.total_requests,
                created_at=row.api_key.created_at,
            )
            for row in rows
        ],
        can_create=rule.can_create,
        max_keys=rule.max_keys,
        max_limit_per_key=rule.max_limit_per_key,
    )


@router.post("", response_model=CreateApiKeyResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    body: CreateApiKeyRequest,
    user: ActiveUser,
    service: ApiKeyServiceDep,
    settings: SystemSettingsDep,
    db: DbSession,
) -> CreateApiKeyResponse:
    """Issue an additional key. The full key value is only returned here."""
    api_key = await service.create_for_self(
        user, settings, label=body.label, daily_limit=body.daily_limit
    )
    await db.commit()
    return CreateApiKeyResponse(
        message="API key created.",
        api_key=CreatedApiKeyResponse(
            id=api_key.id,
            user_id=api_key.user_id,
            key=api_key.key,
            label=api_key.label,
            status=api_key.status,
            daily_limit=api_key.daily_limit,
            created_at=api_key.created_at,
        ),
    )


@router.post("/{api_key_id}/revoke", response_model=MessageResponse)
async def revoke_api_key(
    api_key_id: UUID,
    user: ActiveUser,
    service: ApiKeyServiceDep,
    settings: SystemSettingsDep,
    db: DbSession,
) -> MessageResponse:
    """Revoke one of the caller's keys. Revoking an already revoked key is a no-op."""
    revoked = await service.revoke_own(user, api_key_id, settings)
    if not revoked:
        return MessageResponse(message="API key already revoked.")
    await db.commit()
    return MessageResponse(message="API key revoked.")
