"""Superadmin operations router.

Every mutation is rate limited per admin and action scope and leaves an
audit row carrying the admin's stated reason.
"""

from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import APIRouter, status

from jzapi.dependencies import (
    ApiEndpointRepoDep,
    ApiKeyRepoDep,
    ApiKeyServiceDep,
    AuditLogRepoDep,
    ClockDep,
    DbSession,
    RateLimiterDep,
    RequestMeta,
    SettingsProviderDep,
    SuperAdmin,
    SystemSettingRepoDep,
    SystemSettingsDep,
    UserRepoDep,
    enforce_admin_rate_limit,
)
from jzapi.exceptions import ResourceNotFoundError, ValidationError
from jzapi.models.api_endpoint import ApiEndpoint, EndpointStatus
from jzapi.models.user import User
from jzapi.plans import UserRole
from jzapi.schemas.admin import (
    AdminApiEndpointResponse,
    AdminApiKeyResponse,
    AdminCreateApiKeyRequest,
    AdminUserResponse,
    BulkRevokeApiKeysRequest,
    BulkRevokeResponse,
    SettingResponse,
    SettingsResponse,
    UpdateApiEndpointRequest,
    UpdateApiKeyRequest,
    UpdateSettingRequest,
    UpdateUserRequest,
)
from jzapi.schemas.api_keys import CreateApiKeyResponse, CreatedApiKeyResponse
from jzapi.services.api_key_service import api_key_snapshot
from jzapi.services.settings_service import DEFAULT_SYSTEM_SETTINGS, SYSTEM_SETTING_KEYS
from jzapi.utils.clock import ensure_utc
from jzapi.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

DEFAULT_MAINTENANCE_NOTE = "Maintenance in progress."


def _user_snapshot(user: User) -> dict[str, Any]:
    blocked_at = ensure_utc(user.blocked_at)
    ban_until = ensure_utc(user.ban_until)
    return {
        "id": str(user.id),
        "email": user.email,
        "plan": user.plan,
        "role": user.role,
        "is_blocked": bool(user.is_blocked),
        "blocked_at": blocked_at.isoformat() if blocked_at else None,
        "ban_until": ban_until.isoformat() if ban_until else None,
        "ban_reason": user.ban_reason,
        "referral_bonus_daily": user.referral_bonus_daily,
    }


def _endpoint_snapshot(endpoint: ApiEndpoint) -> dict[str, Any]:
    return {
        "slug": endpoint.slug,
        "name": endpoint.name,
        "path": endpoint.path,
        "status": endpoint.status,
        "maintenance_note": endpoint.maintenance_note,
    }


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    user_repo: UserRepoDep,
    audit_repo: AuditLogRepoDep,
    db: DbSession,
    clock: ClockDep,
    meta: RequestMeta,
) -> AdminUserResponse:
    """Change plan, role, referral bonus or ban state of a user."""
    await enforce_admin_rate_limit(limiter, admin, "admin-user-patch", max_hits=30)

    if user_id == admin.id and body.is_blocked is True:
        raise ValidationError("You cannot block your own account.")
    if user_id == admin.id and body.role == UserRole.USER:
        raise ValidationError("You cannot remove your own SUPERADMIN role.")
    if body.is_blocked is True and body.ban_time_minutes is None:
        raise ValidationError("ban_time_minutes is required when blocking a user.")
    if body.is_blocked is not True and body.ban_time_minutes is not None:
        raise ValidationError("ban_time_minutes can only be set when is_blocked is true.")

    target = await user_repo.get_by_id(user_id)
    if target is None:
        raise ResourceNotFoundError("User", str(user_id))
    before = _user_snapshot(target)

    values: dict[str, Any] = {}
    if body.plan is not None:
        values["plan"] = body.plan
    if body.role is not None:
        values["role"] = body.role
    if body.referral_bonus_daily is not None:
        values["referral_bonus_daily"] = body.referral_bonus_daily
    if body.is_blocked is False:
        values.update(is_blocked=False, blocked_at=None, ban_until=None, ban_reason=None)
    if body.is_blocked is True:
        now = clock.now()
        values.update(
            is_blocked=True,
            blocked_at=now,
            ban_reason=(body.ban_reason or "").strip() or None,
            ban_until=(
                None
                if body.ban_time_minutes == -1
                else now + timedelta(minutes=body.ban_time_minutes)
            ),
        )

    target = await user_repo.update_fields(target, values)
    after = _user_snapshot(target)
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_USER_UPDATE",
        target_type="USER",
        target_id=str(user_id),
        reason=body.reason,
        before=before,
        after=after,
        **meta,
    )
    await db.commit()

    log.info(
        "admin updated user",
        admin_id=str(admin.id),
        user_id=str(user_id),
        fields=sorted(values),
    )
    return AdminUserResponse(**after)


@router.post(
    "/users/{user_id}/api-keys",
    response_model=CreateApiKeyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user_api_key(
    user_id: UUID,
    body: AdminCreateApiKeyRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    user_repo: UserRepoDep,
    service: ApiKeyServiceDep,
    audit_repo: AuditLogRepoDep,
    settings: SystemSettingsDep,
    db: DbSession,
    meta: RequestMeta,
) -> CreateApiKeyResponse:
    """Issue a key on behalf of a user."""
    await enforce_admin_rate_limit(limiter, admin, "admin-user-api-key-create", max_hits=20)

    target = await user_repo.get_by_id(user_id)
    if target is None:
        raise ResourceNotFoundError("User", str(user_id))

    api_key, before = await service.create_for_user(
        target, settings, label=body.label, daily_limit=body.daily_limit
    )
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_API_KEY_CREATE",
        target_type="API_KEY",
        target_id=str(api_key.id),
        reason=body.reason,
        before=before,
        after=api_key_snapshot(api_key),
        **meta,
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


@router.patch("/api-keys/{api_key_id}", response_model=AdminApiKeyResponse)
async def update_api_key(
    api_key_id: UUID,
    body: UpdateApiKeyRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    api_key_repo: ApiKeyRepoDep,
    service: ApiKeyServiceDep,
    audit_repo: AuditLogRepoDep,
    settings: SystemSettingsDep,
    db: DbSession,
    meta: RequestMeta,
) -> AdminApiKeyResponse:
    """Change a key's status, daily limit or label. Revoked keys stay revoked."""
    await enforce_admin_rate_limit(limiter, admin, "admin-api-key-patch", max_hits=50)

    api_key = await api_key_repo.get_by_id(api_key_id)
    if api_key is None:
        raise ResourceNotFoundError("API key", str(api_key_id))
    before = api_key_snapshot(api_key)

    api_key = await service.admin_update(
        api_key,
        settings,
        status=body.status,
        daily_limit=body.daily_limit,
        label=body.label,
    )
    after = api_key_snapshot(api_key)
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_API_KEY_UPDATE",
        target_type="API_KEY",
        target_id=str(api_key_id),
        reason=body.reason,
        before=before,
        after=after,
        **meta,
    )
    await db.commit()
    return AdminApiKeyResponse(**after)


@router.post("/api-keys/bulk-revoke", response_model=BulkRevokeResponse)
async def bulk_revoke_api_keys(
    body: BulkRevokeApiKeysRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    service: ApiKeyServiceDep,
    audit_repo: AuditLogRepoDep,
    db: DbSession,
    clock: ClockDep,
    meta: RequestMeta,
) -> BulkRevokeResponse:
    """Revoke up to 200 keys at once; already revoked keys are skipped."""
    await enforce_admin_rate_limit(limiter, admin, "admin-api-key-bulk-revoke", max_hits=10)

    result = await service.bulk_revoke(body.api_key_ids)
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_API_KEY_BULK_REVOKE",
        target_type="API_KEY_BULK",
        target_id=f"bulk-revoke-{int(clock.now().timestamp() * 1000)}",
        reason=body.reason,
        before=result.before,
        after={
            "selected_count": result.selected_count,
            "revoked_count": result.revoked_count,
            "key_ids": [row["id"] for row in result.before],
        },
        **meta,
    )
    await db.commit()

    log.info(
        "admin bulk revoked api keys",
        admin_id=str(admin.id),
        selected=result.selected_count,
        revoked=result.revoked_count,
    )
    return BulkRevokeResponse(
        message="Bulk revoke completed.",
        selected_count=result.selected_count,
        revoked_count=result.revoked_count,
    )


@router.patch("/apis/{slug}", response_model=AdminApiEndpointResponse)
async def update_api_endpoint(
    slug: str,
    body: UpdateApiEndpointRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    endpoint_repo: ApiEndpointRepoDep,
    audit_repo: AuditLogRepoDep,
    db: DbSession,
    meta: RequestMeta,
) -> AdminApiEndpointResponse:
    """Set the operational status of a proxied endpoint."""
    await enforce_admin_rate_limit(limiter, admin, "admin-api-endpoint-patch", max_hits=40)

    endpoint = await endpoint_repo.get_by_slug(slug)
    if endpoint is None:
        raise ResourceNotFoundError("API endpoint", slug)
    before = _endpoint_snapshot(endpoint)

    note = (body.maintenance_note or "").strip() or None
    if body.status == EndpointStatus.MAINTENANCE:
        note = note or endpoint.maintenance_note or DEFAULT_MAINTENANCE_NOTE

    endpoint = await endpoint_repo.update_status(endpoint, body.status, note)
    after = _endpoint_snapshot(endpoint)
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_API_ENDPOINT_UPDATE",
        target_type="API_ENDPOINT",
        target_id=slug,
        reason=body.reason,
        before=before,
        after=after,
        **meta,
    )
    await db.commit()
    return AdminApiEndpointResponse(**after)


@router.get("/settings", response_model=SettingsResponse)
async def get_system_settings(
    admin: SuperAdmin,
    provider: SettingsProviderDep,
    repo: SystemSettingRepoDep,
) -> SettingsResponse:
    """Current runtime settings, read through the cache bypass."""
    current = await provider.get(repo, force=True)
    return SettingsResponse(settings=current, defaults=dict(DEFAULT_SYSTEM_SETTINGS))


@router.put("/settings/{key}", response_model=SettingResponse)
async def update_system_setting(
    key: str,
    body: UpdateSettingRequest,
    admin: SuperAdmin,
    limiter: RateLimiterDep,
    provider: SettingsProviderDep,
    repo: SystemSettingRepoDep,
    audit_repo: AuditLogRepoDep,
    settings: SystemSettingsDep,
    db: DbSession,
    meta: RequestMeta,
) -> SettingResponse:
    """Validate and store one runtime setting; the cache is invalidated on write."""
    await enforce_admin_rate_limit(limiter, admin, "admin-system-setting-patch", max_hits=30)

    if key not in SYSTEM_SETTING_KEYS:
        raise ResourceNotFoundError("Setting", key)

    value = await provider.update(repo, key, body.value, admin.id)
    await audit_repo.create(
        actor_user_id=admin.id,
        action="ADMIN_SYSTEM_SETTING_UPDATE",
        target_type="SYSTEM_SETTING",
        target_id=key,
        reason=body.reason,
        before={"merged_value": settings.get(key)},
        after={"key": key, "value": value},
        **meta,
    )
    await db.commit()
    # drop anything cached between the write and the commit
    provider.invalidate()
    return SettingResponse(key=key, value=value)
