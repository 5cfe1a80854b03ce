"""FastAPI dependency injection providers."""

from functools import lru_cache
from typing import Annotated, Any, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.config import Settings, get_settings
from jzapi.database import get_db
from jzapi.exceptions import (
    AdminRateLimitError,
    ForbiddenError,
    InvalidTokenError,
    UserBlockedError,
)
from jzapi.models.user import User
from jzapi.plans import UserRole
from jzapi.repositories.api_endpoint_repository import ApiEndpointRepository
from jzapi.repositories.api_key_repository import ApiKeyRepository
from jzapi.repositories.audit_log_repository import AuditLogRepository
from jzapi.repositories.system_setting_repository import SystemSettingRepository
from jzapi.repositories.user_repository import UserRepository
from jzapi.services.api_key_service import ApiKeyService
from jzapi.services.auth_service import get_auth_service
from jzapi.services.ban_service import BanSnapshot, build_ban_info, normalize_user_ban_state
from jzapi.services.gate_service import GateService
from jzapi.services.proxy_service import ProxyService
from jzapi.services.settings_service import SystemSettingsProvider, get_settings_provider
from jzapi.utils.clock import Clock, system_clock
from jzapi.utils.logger import get_logger
from jzapi.utils.rate_limit import AdminRateLimiter

log = get_logger(__name__)


# Type aliases for cleaner router signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_clock() -> Clock:
    """Time source; overridden in tests."""
    return system_clock


ClockDep = Annotated[Clock, Depends(get_clock)]


# ============================================================================
# Repositories (request-scoped)
# ============================================================================


def get_user_repository(db: DbSession) -> UserRepository:
    """Get UserRepository with database session."""
    return UserRepository(db)


def get_api_key_repository(db: DbSession) -> ApiKeyRepository:
    return ApiKeyRepository(db)


def get_api_endpoint_repository(db: DbSession) -> ApiEndpointRepository:
    return ApiEndpointRepository(db)


def get_system_setting_repository(db: DbSession) -> SystemSettingRepository:
    return SystemSettingRepository(db)


def get_audit_log_repository(db: DbSession) -> AuditLogRepository:
    return AuditLogRepository(db)


UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
ApiKeyRepoDep = Annotated[ApiKeyRepository, Depends(get_api_key_repository)]
ApiEndpointRepoDep = Annotated[ApiEndpointRepository, Depends(get_api_endpoint_repository)]
SystemSettingRepoDep = Annotated[SystemSettingRepository, Depends(get_system_setting_repository)]
AuditLogRepoDep = Annotated[AuditLogRepository, Depends(get_audit_log_repository)]


# ============================================================================
# Runtime system settings
# ============================================================================


SettingsProviderDep = Annotated[SystemSettingsProvider, Depends(get_settings_provider)]


async def get_system_settings(
    provider: SettingsProviderDep,
    repo: SystemSettingRepoDep,
) -> dict[str, Any]:
    """Merged runtime settings (cached)."""
    return await provider.get(repo)


SystemSettingsDep = Annotated[dict[str, Any], Depends(get_system_settings)]


# ============================================================================
# Services
# ============================================================================


def get_gate_service(db: DbSession, clock: ClockDep, settings: SettingsDep) -> GateService:
    return GateService(
        db, clock=clock, max_increment_attempts=settings.usage_increment_max_attempts
    )


GateServiceDep = Annotated[GateService, Depends(get_gate_service)]


def get_proxy_service(gate: GateServiceDep, settings: SettingsDep) -> ProxyService:
    return ProxyService(gate, creator=settings.api_creator)


ProxyServiceDep = Annotated[ProxyService, Depends(get_proxy_service)]


def get_api_key_service(db: DbSession, clock: ClockDep) -> ApiKeyService:
    return ApiKeyService(db, clock=clock)


ApiKeyServiceDep = Annotated[ApiKeyService, Depends(get_api_key_service)]


# ============================================================================
# Authentication Dependencies
# ============================================================================


async def get_session_user(
    user_repo: UserRepoDep,
    authorization: Annotated[str | None, Header(alias="Authorization")] = None,
) -> User:
    """Resolve the signed-in user from the session token. Ban state is not checked."""
    claims = get_auth_service().verify_token(authorization)
    user = await user_repo.get_by_id(claims.user_id)
    if user is None:
        log.warning("session user not found", user_id=str(claims.user_id))
        raise InvalidTokenError("User not found")
    return user


SessionUser = Annotated[User, Depends(get_session_user)]


async def get_active_user(
    user: SessionUser,
    user_repo: UserRepoDep,
    db: DbSession,
    clock: ClockDep,
) -> User:
    """Signed-in user whose account is not blocked (expired blocks are lifted first)."""
    now = clock.now()
    snapshot = BanSnapshot.from_user(user)
    normalized = await normalize_user_ban_state(user_repo, snapshot, now=now)
    if normalized.is_blocked:
        info = build_ban_info(normalized, now=now)
        raise UserBlockedError(info.message or "User account is blocked.")
    if normalized is not snapshot:
        await db.commit()
        await db.refresh(user)
    return user


ActiveUser = Annotated[User, Depends(get_active_user)]


async def get_superadmin(user: ActiveUser) -> User:
    if user.role != UserRole.SUPERADMIN:
        raise ForbiddenError()
    return user


SuperAdmin = Annotated[User, Depends(get_superadmin)]


# ============================================================================
# Admin rate limiting
# ============================================================================


@lru_cache(maxsize=1)
def get_default_rate_limiter() -> AdminRateLimiter:
    """Process-local limiter used when no shared store was configured at startup."""
    return AdminRateLimiter()


def get_rate_limiter(request: Request) -> AdminRateLimiter:
    limiter: Optional[AdminRateLimiter] = getattr(request.app.state, "rate_limiter", None)
    return limiter or get_default_rate_limiter()


RateLimiterDep = Annotated[AdminRateLimiter, Depends(get_rate_limiter)]


async def enforce_admin_rate_limit(
    limiter: AdminRateLimiter,
    admin: User,
    scope: str,
    max_hits: int,
    window_seconds: int = 60,
) -> None:
    """Raise AdminRateLimitError (429) when ``admin`` exceeded ``scope``'s window."""
    decision = await limiter.check(
        str(admin.id), scope, max_hits=max_hits, window_seconds=window_seconds
    )
    if not decision.allowed:
        raise AdminRateLimitError(decision.retry_after_sec)


# ============================================================================
# Request metadata
# ============================================================================


def get_request_meta(request: Request) -> dict[str, Optional[str]]:
    """Client ip and user agent for the audit trail."""
    forwarded = request.headers.get("x-forwarded-for", "")
    real_ip = request.headers.get("x-real-ip", "")
    ip = forwarded.split(",")[0].strip() or real_ip.strip()
    if not ip and request.client:
        ip = request.client.host
    return {
        "ip_address": ip or None,
        "user_agent": request.headers.get("user-agent") or None,
    }


RequestMeta = Annotated[dict[str, Optional[str]], Depends(get_request_meta)]
