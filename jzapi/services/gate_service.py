"""API key authorization and metering gate.

Every proxied endpoint passes through this gate before doing any work:

1. endpoint availability (no quota is spent on unavailable endpoints)
2. key lookup joined with the owner's ban fields and referral bonus
3. key status
4. lazy ban normalization, then ban enforcement
5. effective limit = key daily limit + owner referral bonus
6. atomic check-and-increment of today's usage row

The increment is committed before the gate returns, so quota is charged on
admission regardless of what the upstream call does afterwards.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jzapi.exceptions import (
    ApiKeyNotActiveError,
    DailyLimitReachedError,
    InvalidApiKeyError,
    ServiceUnavailableError,
    UserBlockedError,
)
from jzapi.models.api_endpoint import EndpointStatus
from jzapi.models.api_key import ApiKeyStatus
from jzapi.plans import effective_daily_limit
from jzapi.repositories.api_endpoint_repository import ApiEndpointRepository
from jzapi.repositories.api_key_repository import ApiKeyRepository
from jzapi.repositories.usage_log_repository import UsageLogRepository
from jzapi.repositories.user_repository import UserRepository
from jzapi.services.ban_service import BanSnapshot, build_ban_info, normalize_user_ban_state
from jzapi.utils.clock import Clock, system_clock, utc_today
from jzapi.utils.logger import get_logger

log = get_logger(__name__)
_tenacity_logger = logging.getLogger(f"{__name__}.retry")

NON_ACTIVE_MESSAGE = "Endpoint is currently non-active."
MAINTENANCE_MESSAGE = "Endpoint is under maintenance."


@dataclass(frozen=True, slots=True)
class GateAdmission:
    """Outcome of a successful authorization."""

    api_key_id: UUID
    user_id: UUID
    effective_limit: int
    used_count: int

    @property
    def remaining(self) -> int:
        return max(self.effective_limit - self.used_count, 0)


class GateService:
    """Shared authorization + metering component for proxied endpoints."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock = system_clock,
        max_increment_attempts: int = 3,
    ):
        self.session = session
        self.clock = clock
        self.max_increment_attempts = max(1, max_increment_attempts)
        self.api_keys = ApiKeyRepository(session)
        self.users = UserRepository(session)
        self.usage = UsageLogRepository(session)
        self.endpoints = ApiEndpointRepository(session)

    async def check_availability(self, slug: str) -> None:
        """Raise ServiceUnavailableError unless the endpoint is ACTIVE.

        Endpoints without a catalog row are treated as ACTIVE.
        """
        status = await self.endpoints.get_status(slug)
        if status == EndpointStatus.NON_ACTIVE:
            log.info("endpoint unavailable", slug=slug, status=status)
            raise ServiceUnavailableError(NON_ACTIVE_MESSAGE)
        if status == EndpointStatus.MAINTENANCE:
            log.info("endpoint unavailable", slug=slug, status=status)
            raise ServiceUnavailableError(MAINTENANCE_MESSAGE)

    async def authorize_and_consume(self, key: str) -> GateAdmission:
        """Validate ``key`` and count one request against its daily quota.

        Raises:
            InvalidApiKeyError: no such key (401)
            ApiKeyNotActiveError: key revoked (403)
            UserBlockedError: owner blocked after normalization (403)
            DailyLimitReachedError: today's quota already used up (429)
        """
        api_key = await self.api_keys.get_by_key_with_owner(key)
        if api_key is None:
            log.info("gate denied", reason="invalid_key")
            raise InvalidApiKeyError()

        if api_key.status != ApiKeyStatus.ACTIVE:
            log.info("gate denied", reason="key_not_active", api_key_id=str(api_key.id))
            raise ApiKeyNotActiveError()

        owner = api_key.user
        now = self.clock.now()
        ban = await normalize_user_ban_state(self.users, BanSnapshot.from_user(owner), now=now)
        if ban.is_blocked:
            info = build_ban_info(ban, now=now)
            log.info("gate denied", reason="user_blocked", user_id=str(owner.id))
            raise UserBlockedError(info.message or "User account is blocked.")
        if ban.is_blocked != bool(owner.is_blocked):
            # lazy unban must be durable even if the quota check below fails
            await self.session.commit()

        limit = effective_daily_limit(api_key.daily_limit, owner.referral_bonus_daily)
        used = await self._consume(api_key.id, limit)
        if used is None:
            log.info("gate denied", reason="daily_limit", api_key_id=str(api_key.id), limit=limit)
            raise DailyLimitReachedError(limit=limit)

        admission = GateAdmission(
            api_key_id=api_key.id,
            user_id=owner.id,
            effective_limit=limit,
            used_count=used,
        )
        log.debug(
            "gate admitted",
            api_key_id=str(api_key.id),
            used=used,
            limit=limit,
            remaining=admission.remaining,
        )
        return admission

    async def _consume(self, api_key_id: UUID, limit: int) -> int | None:
        """Ledger increment + commit, retried on transient persistence errors."""
        usage_date = utc_today(self.clock)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_increment_attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=before_sleep_log(_tenacity_logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                try:
                    used = await self.usage.consume(api_key_id, limit, usage_date)
                    await self.session.commit()
                except OperationalError:
                    await self.session.rollback()
                    raise
        return used
