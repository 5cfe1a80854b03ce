"""Repository for ApiKey model operations."""

from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from jzapi.models.api_key import ApiKey, ApiKeyStatus
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


class ApiKeyRepository:
    """Repository for API key lookups and mutations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key_with_owner(self, key: str) -> Optional[ApiKey]:
        """Look up a key by its secret value, eagerly loading the owner."""
        result = await self.session.execute(
            select(ApiKey).options(joinedload(ApiKey.user)).where(ApiKey.key == key)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, api_key_id: UUID) -> Optional[ApiKey]:
        result = await self.session.execute(
            select(ApiKey).options(joinedload(ApiKey.user)).where(ApiKey.id == api_key_id)
        )
        return result.scalar_one_or_none()

    async def get_owned(self, api_key_id: UUID, user_id: UUID) -> Optional[ApiKey]:
        """Get a key only if it belongs to the given user."""
        result = await self.session.execute(
            select(ApiKey).where(ApiKey.id == api_key_id, ApiKey.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: UUID) -> list[ApiKey]:
        result = await self.session.execute(
            select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.created_at)
        )
        return list(result.scalars().all())

    async def count_by_user(self, user_id: UUID, active_only: bool = False) -> int:
        query = select(func.count()).select_from(ApiKey).where(ApiKey.user_id == user_id)
        if active_only:
            query = query.where(ApiKey.status == ApiKeyStatus.ACTIVE)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def key_exists(self, key: str) -> bool:
        result = await self.session.execute(select(ApiKey.id).where(ApiKey.key == key))
        return result.scalar_one_or_none() is not None

    async def create(
        self,
        user_id: UUID,
        key: str,
        daily_limit: int,
        label: Optional[str] = None,
    ) -> ApiKey:
        """
        Create a new ACTIVE key.

        Caller is responsible for committing the transaction.
        """
        api_key = ApiKey(
            user_id=user_id,
            key=key,
            label=label,
            status=ApiKeyStatus.ACTIVE,
            daily_limit=daily_limit,
        )
        self.session.add(api_key)
        await self.session.flush()
        await self.session.refresh(api_key)
        log.info("api key created", api_key_id=str(api_key.id), user_id=str(user_id))
        return api_key

    async def update_fields(self, api_key: ApiKey, values: dict[str, Any]) -> ApiKey:
        """
        Apply a partial update to a key.

        Caller is responsible for committing the transaction.
        """
        if not values:
            return api_key
        await self.session.execute(update(ApiKey).where(ApiKey.id == api_key.id).values(**values))
        await self.session.flush()
        await self.session.refresh(api_key)
        log.debug("api key updated", api_key_id=str(api_key.id), fields=sorted(values))
        return api_key

    async def list_by_ids(self, api_key_ids: Iterable[UUID]) -> list[ApiKey]:
        ids = list(api_key_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(ApiKey).where(ApiKey.id.in_(ids)).order_by(ApiKey.created_at)
        )
        return list(result.scalars().all())

    async def revoke_many(self, api_key_ids: Iterable[UUID]) -> int:
        """
        Revoke every listed key that is not already REVOKED.

        Returns the number of keys whose status changed. Caller is
        responsible for committing the transaction.
        """
        ids = list(api_key_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            update(ApiKey)
            .where(ApiKey.id.in_(ids), ApiKey.status != ApiKeyStatus.REVOKED)
            .values(status=ApiKeyStatus.REVOKED)
        )
        log.info("api keys revoked", selected=len(ids), revoked=result.rowcount)
        return result.rowcount
