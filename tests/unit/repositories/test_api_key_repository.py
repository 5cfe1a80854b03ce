"""Tests for ApiKeyRepository."""

import uuid
from unittest.mock import Mock

import pytest

from jzapi.models.api_key import ApiKey, ApiKeyStatus
from jzapi.repositories.api_key_repository import ApiKeyRepository


class TestApiKeyRepository:
    @pytest.fixture
    def api_key_repository(self, mock_async_session):
        return ApiKeyRepository(session=mock_async_session)

    @pytest.mark.asyncio
    async def test_get_by_key_with_owner_returns_none(self, api_key_repository):
        assert await api_key_repository.get_by_key_with_owner("jz_missing") is None

    @pytest.mark.asyncio
    async def test_count_by_user(self, api_key_repository, mock_async_session):
        mock_result = Mock()
        mock_result.scalar_one.return_value = 3
        mock_async_session.execute.return_value = mock_result

        assert await api_key_repository.count_by_user(uuid.uuid4(), active_only=True) == 3

    @pytest.mark.asyncio
    async def test_key_exists(self, api_key_repository, mock_async_session):
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = uuid.uuid4()
        mock_async_session.execute.return_value = mock_result

        assert await api_key_repository.key_exists("jz_taken") is True

    @pytest.mark.asyncio
    async def test_create_adds_active_key(self, api_key_repository, mock_async_session):
        user_id = uuid.uuid4()

        api_key = await api_key_repository.create(user_id, "jz_abc", 500, label="Main")

        mock_async_session.add.assert_called_once()
        added = mock_async_session.add.call_args.args[0]
        assert isinstance(added, ApiKey)
        assert added is api_key
        assert added.status == ApiKeyStatus.ACTIVE
        assert added.daily_limit == 500
        assert added.label == "Main"
        mock_async_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoke_many_skips_revoked_rows(self, api_key_repository, mock_async_session):
        mock_result = Mock()
        mock_result.rowcount = 2
        mock_async_session.execute.return_value = mock_result

        revoked = await api_key_repository.revoke_many([uuid.uuid4(), uuid.uuid4(), uuid.uuid4()])

        assert revoked == 2
        statement = mock_async_session.execute.call_args.args[0]
        compiled = statement.compile()
        assert "UPDATE api_keys" in str(compiled)
        assert "api_keys.status !=" in str(compiled)
        assert "REVOKED" in compiled.params.values()

    @pytest.mark.asyncio
    async def test_bulk_methods_skip_empty_input(self, api_key_repository, mock_async_session):
        assert await api_key_repository.list_by_ids([]) == []
        assert await api_key_repository.revoke_many([]) == 0
        mock_async_session.execute.assert_not_called()


class TestMaskedKey:
    def test_masks_middle(self):
        api_key = ApiKey(key="jz_0123456789abcdef")

        assert api_key.masked_key == "jz_********cdef"

    def test_short_key_fully_masked(self):
        assert ApiKey(key="abcd").masked_key == "****"
