"""Integration test configuration with a real database.

Defaults to a throwaway SQLite file; set TEST_DATABASE_URL to run the same
tests against PostgreSQL.
"""

import os
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import jzapi.models  # noqa: F401  registers every table on Base.metadata
from jzapi.database import Base
from jzapi.repositories.api_key_repository import ApiKeyRepository
from jzapi.repositories.user_repository import UserRepository
from jzapi.utils.clock import FrozenClock

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


def pytest_collection_modifyitems(items):
    """Apply integration marker to all tests in this directory."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with a fresh schema."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'jzapi_test.db'}"
    kwargs = {"connect_args": {"timeout": 30}} if url.startswith("sqlite") else {}
    engine = create_async_engine(url, echo=False, **kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 14, 10, 30, tzinfo=timezone.utc))


@pytest.fixture
def create_account(session_factory):
    """Factory fixture: persist a user with one ACTIVE key.

    Returns (user_id, api_key_id, key_value).
    """

    async def _create(
        plan: str = "FREE",
        daily_limit: int = 100,
        referral_bonus_daily: int = 0,
        is_blocked: bool = False,
        ban_until: Optional[datetime] = None,
        ban_reason: Optional[str] = None,
    ) -> tuple[uuid.UUID, uuid.UUID, str]:
        async with session_factory() as session:
            users = UserRepository(session)
            user = await users.create(
                email=f"{uuid.uuid4().hex[:10]}@example.com",
                plan=plan,
                referral_bonus_daily=referral_bonus_daily,
            )
            if is_blocked:
                await users.update_fields(
                    user,
                    {
                        "is_blocked": True,
                        "blocked_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
                        "ban_until": ban_until,
                        "ban_reason": ban_reason,
                    },
                )
            key_value = f"jz_{uuid.uuid4().hex}"
            api_key = await ApiKeyRepository(session).create(
                user_id=user.id, key=key_value, daily_limit=daily_limit
            )
            await session.commit()
            return user.id, api_key.id, key_value

    return _create
