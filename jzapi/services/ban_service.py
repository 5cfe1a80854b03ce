"""Ban state normalization and user-facing ban messages."""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from jzapi.repositories.user_repository import UserRepository
from jzapi.utils.clock import ensure_utc
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BanSnapshot:
    """The ban-related fields of a user at one point in time."""

    id: UUID
    is_blocked: bool
    blocked_at: Optional[datetime] = None
    ban_until: Optional[datetime] = None
    ban_reason: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "BanSnapshot":
        return cls(
            id=user.id,
            is_blocked=bool(user.is_blocked),
            blocked_at=ensure_utc(user.blocked_at),
            ban_until=ensure_utc(user.ban_until),
            ban_reason=user.ban_reason,
        )

    @property
    def is_permanent(self) -> bool:
        return self.is_blocked and self.ban_until is None


@dataclass(frozen=True, slots=True)
class BanInfo:
    blocked: bool
    permanent: bool
    reason: Optional[str]
    until: Optional[str]
    remaining_text: Optional[str]
    message: Optional[str]


NOT_BLOCKED = BanInfo(
    blocked=False,
    permanent=False,
    reason=None,
    until=None,
    remaining_text=None,
    message=None,
)


def is_ban_expired(snapshot: BanSnapshot, now: datetime) -> bool:
    return (
        snapshot.is_blocked
        and snapshot.ban_until is not None
        and snapshot.ban_until <= now
    )


async def normalize_user_ban_state(
    user_repo: UserRepository,
    snapshot: BanSnapshot,
    *,
    now: datetime,
) -> BanSnapshot:
    """Lazily lift an expired time-bound block.

    Unblocked snapshots and blocks still in force (permanent, or ending after
    ``now``) are returned unchanged without touching the store. An expired
    block is cleared in the store and the cleared snapshot is returned;
    callers must use the returned value for the rest of the request.
    """
    if not snapshot.is_blocked:
        return snapshot

    if not is_ban_expired(snapshot, now):
        return snapshot

    await user_repo.clear_expired_ban(snapshot.id, now)
    log.info(
        "lazy unban applied",
        user_id=str(snapshot.id),
        ban_until=snapshot.ban_until.isoformat() if snapshot.ban_until else None,
    )
    return replace(
        snapshot,
        is_blocked=False,
        blocked_at=None,
        ban_until=None,
        ban_reason=None,
    )


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_remaining(seconds: float) -> str:
    """Bucket a duration into days/hours/minutes, keeping the two largest non-zero units."""
    total_minutes = max(1, math.ceil(seconds / 60))
    days, rest = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(rest, 60)

    chunks = []
    if days:
        chunks.append(_plural(days, "day"))
    if hours:
        chunks.append(_plural(hours, "hour"))
    if minutes:
        chunks.append(_plural(minutes, "minute"))
    return " ".join(chunks[:2])


def build_ban_info(snapshot: BanSnapshot, *, now: datetime) -> BanInfo:
    """Turn a (normalized) snapshot into user-facing ban details."""
    if not snapshot.is_blocked:
        return NOT_BLOCKED

    reason_text = f" Reason: {snapshot.ban_reason}." if snapshot.ban_reason else ""

    if snapshot.ban_until is None:
        return BanInfo(
            blocked=True,
            permanent=True,
            reason=snapshot.ban_reason,
            until=None,
            remaining_text="permanent",
            message=f"Account has been blocked permanently.{reason_text}",
        )

    remaining_seconds = max(1.0, (snapshot.ban_until - now).total_seconds())
    remaining_text = format_remaining(remaining_seconds)
    end_text = snapshot.ban_until.strftime("%d %b %Y, %H:%M")
    return BanInfo(
        blocked=True,
        permanent=False,
        reason=snapshot.ban_reason,
        until=snapshot.ban_until.isoformat(),
        remaining_text=remaining_text,
        message=(
            f"Account is blocked for {remaining_text} more (until {end_text} UTC).{reason_text}"
        ),
    )
