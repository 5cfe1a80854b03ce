"""Repository for runtime system settings rows."""

from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.models.system_setting import SystemSetting
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


class SystemSettingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_by_keys(self, keys: Iterable[str]) -> list[SystemSetting]:
        result = await self.session.execute(
            select(SystemSetting).where(SystemSetting.key.in_(list(keys)))
        )
        return list(result.scalars().all())

    async def upsert(self, key: str, value: Any, updated_by_id: Optional[UUID]) -> SystemSetting:
        """
        Create or replace a setting value.

        Caller is responsible for committing the transaction.
        """
        result = await self.session.execute(select(SystemSetting).where(SystemSetting.key == key))
        record = result.scalar_one_or_none()
        if record is None:
            record = SystemSetting(key=key, value_json=value, updated_by_id=updated_by_id)
            self.session.add(record)
        else:
            record.value_json = value
            record.updated_by_id = updated_by_id
        await self.session.flush()
        log.info("system setting stored", key=key)
        return record
