"""Tests for UsageLogRepository."""

import uuid
from datetime import date
from unittest.mock import Mock

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from jzapi.repositories.usage_log_repository import UsageLogRepository


class TestConsume:
    @pytest.fixture
    def usage_repository(self, mock_async_session):
        return UsageLogRepository(session=mock_async_session)

    @pytest.mark.asyncio
    async def test_returns_new_count(self, usage_repository, mock_async_session):
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = 7
        mock_async_session.execute.return_value = mock_result

        count = await usage_repository.consume(uuid.uuid4(), 100, date(2026, 3, 14))

        assert count == 7
        mock_async_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_returns_none_at_limit(self, usage_repository, mock_async_session):
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = None
        mock_async_session.execute.return_value = mock_result

        count = await usage_repository.consume(uuid.uuid4(), 100, date(2026, 3, 14))

        assert count is None

    @pytest.mark.asyncio
    async def test_zero_limit_never_touches_the_ledger(
        self, usage_repository, mock_async_session
    ):
        count = await usage_repository.consume(uuid.uuid4(), 0, date(2026, 3, 14))

        assert count is None
        mock_async_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_statement_is_single_conditional_upsert(
        self, usage_repository, mock_async_session
    ):
        await usage_repository.consume(uuid.uuid4(), 100, date(2026, 3, 14))

        stmt = mock_async_session.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT (api_key_id, usage_date) DO UPDATE" in sql
        assert "WHERE usage_logs.requests_count <" in sql
        assert "RETURNING usage_logs.requests_count" in sql

    @pytest.mark.asyncio
    async def test_sqlite_dialect_is_supported(self, usage_repository, mock_async_session):
        mock_async_session.get_bind.return_value.dialect.name = "sqlite"

        await usage_repository.consume(uuid.uuid4(), 100, date(2026, 3, 14))

        stmt = mock_async_session.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=sqlite.dialect()))
        assert "ON CONFLICT" in sql

    @pytest.mark.asyncio
    async def test_unsupported_dialect_raises(self, usage_repository, mock_async_session):
        mock_async_session.get_bind.return_value.dialect.name = "mysql"

        with pytest.raises(NotImplementedError):
            await usage_repository.consume(uuid.uuid4(), 100, date(2026, 3, 14))


class TestCounts:
    @pytest.fixture
    def usage_repository(self, mock_async_session):
        return UsageLogRepository(session=mock_async_session)

    @pytest.mark.asyncio
    async def test_get_count_defaults_to_zero(self, usage_repository):
        assert await usage_repository.get_count(uuid.uuid4(), date(2026, 3, 14)) == 0

    @pytest.mark.asyncio
    async def test_get_counts_for_keys(self, usage_repository, mock_async_session):
        key_a, key_b = uuid.uuid4(), uuid.uuid4()
        mock_result = Mock()
        mock_result.all.return_value = [Mock(api_key_id=key_a, requests_count=3)]
        mock_async_session.execute.return_value = mock_result

        counts = await usage_repository.get_counts_for_keys([key_a, key_b], date(2026, 3, 14))

        assert counts == {key_a: 3}

    @pytest.mark.asyncio
    async def test_empty_key_list_skips_query(self, usage_repository, mock_async_session):
        assert await usage_repository.get_counts_for_keys([], date(2026, 3, 14)) == {}
        assert await usage_repository.get_total_for_keys([]) == {}

        mock_async_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_total_for_keys(self, usage_repository, mock_async_session):
        key_a = uuid.uuid4()
        mock_result = Mock()
        mock_result.all.return_value = [Mock(api_key_id=key_a, total=42)]
        mock_async_session.execute.return_value = mock_result

        totals = await usage_repository.get_total_for_keys([key_a])

        assert totals == {key_a: 42}
