"""Shared pytest fixtures."""

# Clear settings cache before any imports to prevent stale values with coverage
from jzapi.config import get_settings

get_settings.cache_clear()

import pytest
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

from jzapi.utils.clock import FrozenClock


# Database mocking fixtures


@pytest.fixture
def mock_async_session():
    """Create a mock AsyncSession for repository and service tests."""
    session = AsyncMock()

    # Mock result object for execute
    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.scalar_one = Mock(return_value=0)
    mock_result.scalars = Mock(return_value=Mock(all=Mock(return_value=[])))
    mock_result.all = Mock(return_value=[])
    mock_result.rowcount = 0

    session.execute = AsyncMock(return_value=mock_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = Mock()

    # Conditional upserts pick the insert construct from the bound dialect
    bind = Mock()
    bind.dialect.name = "postgresql"
    session.get_bind = Mock(return_value=bind)

    @asynccontextmanager
    async def begin_nested():
        yield

    session.begin_nested = begin_nested

    return session


@pytest.fixture
def frozen_clock():
    """Clock pinned to a fixed UTC instant."""
    return FrozenClock(datetime(2026, 3, 14, 10, 30, tzinfo=timezone.utc))


@pytest.fixture
def make_user():
    """Factory fixture for mock User objects."""

    def _make(
        plan="FREE",
        role="USER",
        is_blocked=False,
        ban_until=None,
        ban_reason=None,
        referral_bonus_daily=0,
    ):
        user = Mock()
        user.id = uuid.uuid4()
        user.email = f"{uuid.uuid4().hex[:8]}@example.com"
        user.plan = plan
        user.role = role
        user.is_blocked = is_blocked
        user.blocked_at = datetime(2026, 3, 1, tzinfo=timezone.utc) if is_blocked else None
        user.ban_until = ban_until
        user.ban_reason = ban_reason
        user.referral_bonus_daily = referral_bonus_daily
        return user

    return _make


@pytest.fixture
def make_api_key():
    """Factory fixture for mock ApiKey objects."""

    def _make(user, status="ACTIVE", daily_limit=100, key=None, label=None):
        api_key = Mock()
        api_key.id = uuid.uuid4()
        api_key.user_id = user.id
        api_key.user = user
        api_key.key = key or f"jz_{uuid.uuid4().hex}"
        api_key.label = label
        api_key.status = status
        api_key.daily_limit = daily_limit
        api_key.masked_key = f"{api_key.key[:3]}********{api_key.key[-4:]}"
        api_key.created_at = datetime(2026, 3, 1, tzinfo=timezone.utc)
        return api_key

    return _make
