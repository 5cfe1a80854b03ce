"""Repository for the admin audit trail."""

import json
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.models.admin_audit_log import AdminAuditLog
from jzapi.utils.logger import get_logger

log = get_logger(__name__)


def _to_json(value: Any) -> Any:
    """Round-trip through JSON so datetimes, UUIDs and enums are stored as strings."""
    if value is None:
        return None
    return json.loads(json.dumps(value, default=str))


class AuditLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        actor_user_id: UUID,
        action: str,
        target_type: str,
        target_id: str,
        reason: str,
        before: Any = None,
        after: Any = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AdminAuditLog:
        """
        Record an admin action.

        Caller is responsible for committing the transaction.
        """
        entry = AdminAuditLog(
            actor_user_id=actor_user_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            reason=reason,
            before_json=_to_json(before),
            after_json=_to_json(after),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:191] or None,
        )
        self.session.add(entry)
        await self.session.flush()
        log.info(
            "admin action recorded",
            actor_user_id=str(actor_user_id),
            action=action,
            target_type=target_type,
            target_id=target_id,
        )
        return entry
