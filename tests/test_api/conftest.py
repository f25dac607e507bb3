"""
Fixtures for testing the API through an in-process client.
"""

from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from groupadmin.api.app import app
from groupadmin.api.dependencies import SETTINGS, get_async_session
from groupadmin.config.settings import Settings
from groupadmin.core.tokens import build_access_token_payload, sign_payload


@pytest_asyncio.fixture(scope="session")
async def client(server_settings: Settings, session_manager):
    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[SETTINGS] = lambda: server_settings
    app.dependency_overrides[get_async_session] = get_test_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="session")
def make_token(server_settings: Settings):
    def make(
        organization_id: str,
        claims: set[str],
        user_id: str = "api-tester",
        validity: timedelta = timedelta(minutes=5),
    ) -> dict[str, str]:
        token = sign_payload(
            secret=server_settings.token_secret,
            algorithm=server_settings.token_algorithm,
            payload=build_access_token_payload(
                user_id=user_id,
                organization_id=organization_id,
                user_type="Admin",
                claims=claims,
                validity=validity,
            ),
        )

        return {"Authorization": f"Bearer {token}"}

    return make
