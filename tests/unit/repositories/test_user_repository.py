"""Tests for UserRepository."""

import uuid
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.dialects import postgresql

from jzapi.repositories.user_repository import UserRepository


class TestUserRepository:
    @pytest.fixture
    def user_repository(self, mock_async_session):
        return UserRepository(session=mock_async_session)

    @pytest.mark.asyncio
    async def test_get_by_id_accepts_string(self, user_repository, mock_async_session):
        user = Mock()
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = user
        mock_async_session.execute.return_value = mock_result

        result = await user_repository.get_by_id(str(uuid.uuid4()))

        assert result is user

    @pytest.mark.asyncio
    async def test_clear_expired_ban_rechecks_expiry(self, user_repository, mock_async_session):
        mock_result = Mock()
        mock_result.rowcount = 1
        mock_async_session.execute.return_value = mock_result
        now = datetime(2026, 3, 14, tzinfo=timezone.utc)

        rows = await user_repository.clear_expired_ban(uuid.uuid4(), now)

        assert rows == 1
        stmt = mock_async_session.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "users.is_blocked IS true" in sql
        assert "users.ban_until IS NOT NULL" in sql
        assert "users.ban_until <=" in sql

    @pytest.mark.asyncio
    async def test_clear_expired_ban_no_match(self, user_repository, mock_async_session):
        rows = await user_repository.clear_expired_ban(
            uuid.uuid4(), datetime(2026, 3, 14, tzinfo=timezone.utc)
        )

        assert rows == 0

    @pytest.mark.asyncio
    async def test_update_fields_noop(self, user_repository, mock_async_session):
        user = Mock()

        result = await user_repository.update_fields(user, {})

        assert result is user
        mock_async_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_fields_refreshes(self, user_repository, mock_async_session):
        user = Mock()
        user.id = uuid.uuid4()

        await user_repository.update_fields(user, {"plan": "PAID"})

        mock_async_session.execute.assert_awaited_once()
        mock_async_session.refresh.assert_awaited_once_with(user)
