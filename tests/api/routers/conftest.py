"""Shared pytest fixtures for router tests."""

import pytest
from contextlib import ExitStack
from typing import AsyncGenerator
from unittest.mock import AsyncMock, Mock, patch

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from jzapi.services.settings_service import DEFAULT_SYSTEM_SETTINGS
from jzapi.utils.rate_limit import AdminRateLimiter, InMemoryRateLimitStore


# Mock database before starting the app to avoid connection issues
@pytest.fixture(autouse=True)
def mock_database_init():
    """Mock database initialization and catalog seeding for all router tests."""
    with ExitStack() as stack:
        stack.enter_context(patch("jzapi.main.init_db", new_callable=AsyncMock))
        stack.enter_context(patch("jzapi.main.seed_api_catalog", new_callable=AsyncMock))
        mock_engine = stack.enter_context(patch("jzapi.main.engine"))
        mock_engine.dispose = AsyncMock()
        yield


@pytest.fixture
def mock_db_session():
    """Create a mock AsyncSession for router tests."""
    session = AsyncMock(spec=AsyncSession)

    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.scalar_one = Mock(return_value=0)
    mock_result.scalars = Mock(return_value=Mock(all=Mock(return_value=[])))

    session.execute = AsyncMock(return_value=mock_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_user_repo():
    """Create a mock UserRepository."""
    repo = AsyncMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.clear_expired_ban = AsyncMock(return_value=1)

    async def update_fields(user, values):
        for name, value in values.items():
            setattr(user, name, value)
        return user

    repo.update_fields = AsyncMock(side_effect=update_fields)
    return repo


@pytest.fixture
def mock_api_key_repo():
    repo = AsyncMock()
    repo.get_by_id = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_endpoint_repo():
    repo = AsyncMock()
    repo.get_by_slug = AsyncMock(return_value=None)
    repo.list_all = AsyncMock(return_value=[])

    async def update_status(endpoint, status, maintenance_note):
        endpoint.status = status
        endpoint.maintenance_note = maintenance_note
        return endpoint

    repo.update_status = AsyncMock(side_effect=update_status)
    return repo


@pytest.fixture
def mock_setting_repo():
    return AsyncMock()


@pytest.fixture
def mock_audit_repo():
    repo = AsyncMock()
    repo.create = AsyncMock()
    return repo


@pytest.fixture
def mock_settings_provider():
    """Create a mock SystemSettingsProvider."""
    provider = Mock()
    provider.get = AsyncMock(return_value=dict(DEFAULT_SYSTEM_SETTINGS))
    provider.update = AsyncMock()
    provider.invalidate = Mock()
    return provider


@pytest.fixture
def mock_gate():
    """Create a mock GateService."""
    gate = AsyncMock()
    gate.check_availability = AsyncMock(return_value=None)
    gate.authorize_and_consume = AsyncMock()
    return gate


@pytest.fixture
def mock_api_key_service():
    return AsyncMock()


@pytest.fixture
def rate_limiter(frozen_clock):
    """Fresh limiter per test so windows never leak between tests."""
    return AdminRateLimiter(InMemoryRateLimitStore(clock=frozen_clock))


@pytest.fixture
def mock_user(make_user):
    """Signed-in regular user."""
    return make_user(plan="FREE")


@pytest.fixture
def mock_admin(make_user):
    """Signed-in superadmin."""
    return make_user(plan="PAID", role="SUPERADMIN")


@pytest.fixture
def build_client(
    mock_db_session,
    mock_user_repo,
    mock_api_key_repo,
    mock_endpoint_repo,
    mock_setting_repo,
    mock_audit_repo,
    mock_settings_provider,
    mock_gate,
    mock_api_key_service,
    rate_limiter,
    frozen_clock,
):
    """Build a TestClient with all infra dependencies overridden.

    When a user is given, session authentication is bypassed and that user
    is signed in. Without one, auth dependencies run normally so tests can
    assert 401 behaviour.
    """
    from jzapi.main import app
    from jzapi.database import get_db
    from jzapi.dependencies import (
        get_api_endpoint_repository,
        get_api_key_repository,
        get_api_key_service,
        get_audit_log_repository,
        get_clock,
        get_gate_service,
        get_rate_limiter,
        get_session_user,
        get_system_setting_repository,
        get_system_settings,
        get_user_repository,
    )
    from jzapi.services.settings_service import get_settings_provider

    stack = ExitStack()

    def _build(user=None):
        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_user_repository] = lambda: mock_user_repo
        app.dependency_overrides[get_api_key_repository] = lambda: mock_api_key_repo
        app.dependency_overrides[get_api_endpoint_repository] = lambda: mock_endpoint_repo
        app.dependency_overrides[get_system_setting_repository] = lambda: mock_setting_repo
        app.dependency_overrides[get_audit_log_repository] = lambda: mock_audit_repo
        app.dependency_overrides[get_settings_provider] = lambda: mock_settings_provider
        app.dependency_overrides[get_system_settings] = lambda: dict(DEFAULT_SYSTEM_SETTINGS)
        app.dependency_overrides[get_gate_service] = lambda: mock_gate
        app.dependency_overrides[get_api_key_service] = lambda: mock_api_key_service
        app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
        app.dependency_overrides[get_clock] = lambda: frozen_clock

        if user is not None:
            app.dependency_overrides[get_session_user] = lambda: user

        return stack.enter_context(TestClient(app, raise_server_exceptions=False))

    yield _build

    stack.close()
    from jzapi.main import app

    app.dependency_overrides.clear()


@pytest.fixture
def client(build_client, mock_user):
    """Client signed in as a regular FREE user."""
    return build_client(mock_user)


@pytest.fixture
def admin_client(build_client, mock_admin):
    """Client signed in as a superadmin."""
    return build_client(mock_admin)


@pytest.fixture
def unauthenticated_client(build_client):
    """Client WITHOUT auth override to test 401 responses."""
    return build_client()
