"""API key issuance, revocation and usage reporting."""

import secrets
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.exceptions import (
    ApiKeyQuotaError,
    ConflictError,
    ForbiddenError,
    ResourceNotFoundError,
    ValidationError,
)
from jzapi.models.api_key import ApiKey, ApiKeyStatus
from jzapi.models.user import User
from jzapi.plans import (
    api_key_create_rule,
    base_daily_limit,
    effective_daily_limit,
    resolve_key_limit,
)
from jzapi.repositories.api_key_repository import ApiKeyRepository
from jzapi.repositories.usage_log_repository import UsageLogRepository
from jzapi.utils.clock import Clock, system_clock, utc_today
from jzapi.utils.logger import get_logger

log = get_logger(__name__)

KEY_PREFIX = "jz_"
MAX_KEY_ATTEMPTS = 30


def generate_key_candidate() -> str:
    return f"{KEY_PREFIX}{secrets.token_hex(24)}"


def api_key_snapshot(api_key: ApiKey) -> dict[str, Any]:
    """Audit-trail view of a key; the secret is masked."""
    return {
        "id": str(api_key.id),
        "user_id": str(api_key.user_id),
        "label": api_key.label,
        "masked_key": api_key.masked_key,
        "status": api_key.status,
        "daily_limit": api_key.daily_limit,
    }


@dataclass(frozen=True, slots=True)
class ApiKeyUsage:
    """A key together with its usage figures for today and all time."""

    api_key: ApiKey
    effective_limit: int
    used_today: int
    total_requests: int

    @property
    def remaining_today(self) -> int:
        return max(self.effective_limit - self.used_today, 0)


@dataclass(frozen=True, slots=True)
class BulkRevokeResult:
    before: list[dict[str, Any]]
    revoked_count: int

    @property
    def selected_count(self) -> int:
        return len(self.before)


class ApiKeyService:
    """Self-service and admin key lifecycle."""

    def __init__(self, session: AsyncSession, clock: Clock = system_clock):
        self.session = session
        self.clock = clock
        self.api_keys = ApiKeyRepository(session)
        self.usage = UsageLogRepository(session)

    async def generate_unique_key(self) -> str:
        for attempt in range(MAX_KEY_ATTEMPTS):
            candidate = generate_key_candidate()
            if not await self.api_keys.key_exists(candidate):
                return candidate
            log.warning("api key collision", attempt=attempt + 1)
        raise RuntimeError("Failed to generate a unique API key.")

    async def create_for_self(
        self,
        user: User,
        settings: dict[str, Any],
        label: Optional[str] = None,
        daily_limit: Optional[int] = None,
    ) -> ApiKey:
        """
        Issue an additional key for the caller.

        Only plans/roles allowed to create keys may call this, and the number
        of ACTIVE keys is capped by the create rule.

        Caller is responsible for committing the transaction.
        """
        rule = api_key_create_rule(user.plan, user.role, settings)
        if not rule.can_create:
            raise ForbiddenError("Your role/plan is not allowed to create additional API keys.")

        active_count = await self.api_keys.count_by_user(user.id, active_only=True)
        if active_count >= rule.max_keys:
            raise ApiKeyQuotaError(f"Maximum active API keys reached ({rule.max_keys}).")

        limit = resolve_key_limit(daily_limit, rule, base_daily_limit(user.plan, settings))
        total_count = await self.api_keys.count_by_user(user.id)
        key_value = await self.generate_unique_key()
        return await self.api_keys.create(
            user_id=user.id,
            key=key_value,
            daily_limit=limit,
            label=(label or "").strip() or f"API Key #{total_count + 1}",
        )

    async def create_for_user(
        self,
        target: User,
        settings: dict[str, Any],
        label: Optional[str] = None,
        daily_limit: Optional[int] = None,
    ) -> tuple[ApiKey, dict[str, Any]]:
        """
        Issue a key on behalf of ``target`` (superadmin action).

        The total number of keys, revoked ones included, is capped by the
        target's create rule. Returns the key and a summary of the state
        before creation for the audit trail.

        Caller is responsible for committing the transaction.
        """
        rule = api_key_create_rule(target.plan, target.role, settings)
        existing = await self.api_keys.count_by_user(target.id)
        if existing >= rule.max_keys:
            raise ApiKeyQuotaError(f"Maximum API keys reached ({rule.max_keys}).")

        limit = resolve_key_limit(daily_limit, rule, base_daily_limit(target.plan, settings))
        key_value = await self.generate_unique_key()
        api_key = await self.api_keys.create(
            user_id=target.id,
            key=key_value,
            daily_limit=limit,
            label=(label or "").strip() or f"Admin Key #{existing + 1}",
        )
        before = {
            "user_id": target.id,
            "user_email": target.email,
            "existing_key_count": existing,
            "max_keys": rule.max_keys,
            "max_limit_per_key": rule.max_limit_per_key,
        }
        return api_key, before

    async def revoke_own(self, user: User, api_key_id: UUID, settings: dict[str, Any]) -> bool:
        """
        Revoke one of the caller's keys.

        Returns False when the key was already revoked. Users whose plan
        cannot create keys are not allowed to revoke their last active key.

        Caller is responsible for committing the transaction.
        """
        api_key = await self.api_keys.get_owned(api_key_id, user.id)
        if api_key is None:
            raise ResourceNotFoundError("API key", str(api_key_id))

        if api_key.status == ApiKeyStatus.REVOKED:
            return False

        active_count = await self.api_keys.count_by_user(user.id, active_only=True)
        if active_count <= 1:
            rule = api_key_create_rule(user.plan, user.role, settings)
            if not rule.can_create:
                raise ValidationError(
                    "Cannot revoke the last active API key for your plan. "
                    "Upgrade or contact admin first."
                )

        await self.api_keys.update_fields(api_key, {"status": ApiKeyStatus.REVOKED})
        log.info("api key revoked", api_key_id=str(api_key.id), user_id=str(user.id))
        return True

    async def bulk_revoke(self, api_key_ids: list[UUID]) -> BulkRevokeResult:
        """
        Revoke a batch of keys (superadmin action).

        Duplicate ids are collapsed and keys that are already REVOKED are left
        as they are. Raises ResourceNotFoundError when none of the ids exist.

        Caller is responsible for committing the transaction.
        """
        unique_ids = list(dict.fromkeys(api_key_ids))
        keys = await self.api_keys.list_by_ids(unique_ids)
        if not keys:
            raise ResourceNotFoundError("API keys", ", ".join(str(i) for i in unique_ids[:5]))

        before = [api_key_snapshot(k) for k in keys]
        revoked = await self.api_keys.revoke_many([k.id for k in keys])
        log.info("api keys bulk revoked", selected=len(keys), revoked=revoked)
        return BulkRevokeResult(before=before, revoked_count=revoked)

    async def admin_update(
        self,
        api_key: ApiKey,
        settings: dict[str, Any],
        status: Optional[str] = None,
        daily_limit: Optional[int] = None,
        label: Optional[str] = None,
    ) -> ApiKey:
        """
        Change a key's status, daily limit or label.

        REVOKED is terminal: a revoked key cannot be made ACTIVE again.
        A new daily limit is capped by the owner's create rule.

        Caller is responsible for committing the transaction.
        """
        values: dict[str, Any] = {}
        if status is not None and status != api_key.status:
            if api_key.status == ApiKeyStatus.REVOKED:
                raise ConflictError("A revoked API key cannot be reactivated.")
            values["status"] = status

        if daily_limit is not None:
            owner = api_key.user
            rule = api_key_create_rule(owner.plan, owner.role, settings)
            values["daily_limit"] = resolve_key_limit(daily_limit, rule, daily_limit)

        if label is not None:
            values["label"] = label.strip() or None

        return await self.api_keys.update_fields(api_key, values)

    async def list_with_usage(self, user: User) -> list[ApiKeyUsage]:
        """The user's keys with effective limit and usage counts."""
        keys = await self.api_keys.list_by_user(user.id)
        ids = [k.id for k in keys]
        today = await self.usage.get_counts_for_keys(ids, utc_today(self.clock))
        totals = await self.usage.get_total_for_keys(ids)
        return [
            ApiKeyUsage(
                api_key=k,
                effective_limit=effective_daily_limit(k.daily_limit, user.referral_bonus_daily),
                used_today=today.get(k.id, 0),
                total_requests=totals.get(k.id, 0),
            )
            for k in keys
        ]
