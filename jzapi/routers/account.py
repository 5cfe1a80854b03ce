"""Account router: ban status of the signed-in user."""

from fastapi import APIRouter

from jzapi.dependencies import ClockDep, DbSession, SessionUser, SystemSettingsDep, UserRepoDep
from jzapi.schemas.account import AccountStatusResponse, BanInfoResponse
from jzapi.services.ban_service import BanSnapshot, build_ban_info, normalize_user_ban_state
from jzapi.services.settings_service import DEFAULT_SYSTEM_SETTINGS

router = APIRouter(prefix="/account", tags=["Account"])

DEFAULT_POLL_MS = DEFAULT_SYSTEM_SETTINGS["ACCOUNT_STATUS_POLL_MS"]


@router.get("/status", response_model=AccountStatusResponse)
async def account_status(
    user: SessionUser,
    user_repo: UserRepoDep,
    db: DbSession,
    clock: ClockDep,
    settings: SystemSettingsDep,
) -> AccountStatusResponse:
    """Current ban state. Expired time-bound blocks are lifted before answering."""
    now = clock.now()
    snapshot = BanSnapshot.from_user(user)
    normalized = await normalize_user_ban_state(user_repo, snapshot, now=now)
    if normalized is not snapshot:
        await db.commit()

    info = build_ban_info(normalized, now=now)
    return AccountStatusResponse(
        user_id=str(user.id),
        plan=user.plan,
        role=user.role,
        ban=BanInfoResponse(
            blocked=info.blocked,
            permanent=info.permanent,
            reason=info.reason,
            until=info.until,
            remaining_text=info.remaining_text,
            message=info.message,
        ),
        poll_interval_ms=int(settings.get("ACCOUNT_STATUS_POLL_MS", DEFAULT_POLL_MS)),
        checked_at=now.isoformat(),
    )
