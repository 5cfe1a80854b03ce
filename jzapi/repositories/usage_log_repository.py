"""Repository for the per-key daily usage ledger."""

import uuid
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.models.usage_log import UsageLog
from jzapi.utils.logger import get_logger

log = get_logger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UsageLogRepository:
    """Repository for atomic daily usage counter operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(
                f"usage ledger requires conditional upsert support, got dialect {dialect!r}"
            ) from None

    async def consume(self, api_key_id: UUID, limit: int, usage_date: date) -> Optional[int]:
        """Atomically count one request against today's row if under ``limit``.

        A single UPSERT creates the row at 1 or increments it, and the
        ``WHERE requests_count < limit`` on the conflict branch makes the
        check and the increment one indivisible statement. Returns the new
        count, or None when the row is already at the limit (nothing written).

        Caller is responsible for committing the transaction.
        """
        if limit <= 0:
            return None

        insert = self._insert()
        stmt = insert(UsageLog).values(
            id=uuid.uuid4(),
            api_key_id=api_key_id,
            usage_date=usage_date,
            requests_count=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UsageLog.api_key_id, UsageLog.usage_date],
            set_={
                "requests_count": UsageLog.requests_count + 1,
                "updated_at": func.now(),
            },
            where=UsageLog.requests_count < limit,
        ).returning(UsageLog.requests_count)

        result = await self.session.execute(stmt)
        count = result.scalar_one_or_none()
        log.debug(
            "usage consume",
            api_key_id=str(api_key_id),
            usage_date=usage_date.isoformat(),
            limit=limit,
            count=count,
        )
        return count

    async def get_count(self, api_key_id: UUID, usage_date: date) -> int:
        """Requests counted for a key on a day. 0 if no row exists yet."""
        result = await self.session.execute(
            select(UsageLog.requests_count).where(
                UsageLog.api_key_id == api_key_id,
                UsageLog.usage_date == usage_date,
            )
        )
        count = result.scalar_one_or_none()
        return count or 0

    async def get_counts_for_keys(
        self, api_key_ids: Iterable[UUID], usage_date: date
    ) -> dict[UUID, int]:
        """Counts for several keys on one day; keys without a row are omitted."""
        ids = list(api_key_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(UsageLog.api_key_id, UsageLog.requests_count).where(
                UsageLog.api_key_id.in_(ids),
                UsageLog.usage_date == usage_date,
            )
        )
        return {row.api_key_id: row.requests_count for row in result.all()}

    async def get_total_for_keys(self, api_key_ids: Iterable[UUID]) -> dict[UUID, int]:
        """All-time request totals per key."""
        ids = list(api_key_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(UsageLog.api_key_id, func.sum(UsageLog.requests_count).label("total"))
            .where(UsageLog.api_key_id.in_(ids))
            .group_by(UsageLog.api_key_id)
        )
        return {row.api_key_id: int(row.total or 0) for row in result.all()}
