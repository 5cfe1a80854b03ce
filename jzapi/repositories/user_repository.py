"""Repository for User model operations."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.models.user import User
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


class UserRepository:
    """Repository for User CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID | str) -> Optional[User]:
        """Get user by UUID."""
        log.debug("query user by id", user_id=str(user_id))
        result = await self.session.execute(select(User).where(User.id == _as_uuid(user_id)))
        user = result.scalar_one_or_none()
        log.debug("query result", found=user is not None)
        return user

    async def create(
        self,
        email: str,
        name: Optional[str] = None,
        plan: str = "FREE",
        role: str = "USER",
        referral_bonus_daily: int = 0,
    ) -> User:
        """
        Create a new user.

        Caller is responsible for committing the transaction.
        """
        user = User(
            email=email,
            name=name,
            plan=plan,
            role=role,
            is_blocked=False,
            referral_bonus_daily=referral_bonus_daily,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        log.info("user created", user_id=str(user.id), plan=plan, role=role)
        return user

    async def clear_expired_ban(self, user_id: UUID | str, now: datetime) -> int:
        """
        Lift a time-bound block whose end has passed.

        The WHERE clause re-checks the expiry so a block that was renewed in the
        meantime is left untouched. Concurrent callers converge on the same
        cleared values. Returns the number of rows changed.

        Caller is responsible for committing the transaction.
        """
        result = await self.session.execute(
            update(User)
            .where(
                User.id == _as_uuid(user_id),
                User.is_blocked.is_(True),
                User.ban_until.is_not(None),
                User.ban_until <= now,
            )
            .values(
                is_blocked=False,
                blocked_at=None,
                ban_until=None,
                ban_reason=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        log.info("expired ban cleared", user_id=str(user_id), rows=result.rowcount)
        return result.rowcount

    async def update_fields(self, user: User, values: dict[str, Any]) -> User:
        """
        Apply a partial update to a user.

        Caller is responsible for committing the transaction.
        """
        if not values:
            return user
        await self.session.execute(update(User).where(User.id == user.id).values(**values))
        await self.session.flush()
        await self.session.refresh(user)
        log.debug("user updated", user_id=str(user.id), fields=sorted(values))
        return user


def _as_uuid(value: UUID | str) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))
