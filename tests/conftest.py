"""
Core configuration
"""

import os

import pytest_asyncio
import structlog
from uuid_extensions import uuid7

from groupadmin.config.settings import Settings
from groupadmin.core.group import GroupCreateModel
from groupadmin.database.organization import Organization
from groupadmin.database.permission import Permission
from groupadmin.database.user import User
from groupadmin.service import groups as groups_service

# (permission_id, name, action, is_active). Shared by every test; tests must
# not add permissions of their own.
PERMISSIONS = [
    ("perm-group-create", "Group", "Create", True),
    ("perm-group-read", "Group", "Read", True),
    ("perm-report-export", "Report", "Export", True),
    ("perm-report-read", "Report", "Read", True),
    ("perm-user-invite", "User", "Invite", True),
    ("perm-user-read", "User", "Read", True),
    ("perm-legacy-purge", "Legacy", "Purge", False),
]

ACTING_USER_ID = "tester"


@pytest_asyncio.fixture(scope="session")
def database_settings(tmp_path_factory):
    """
    SQLite by default; set GROUPADMIN_TEST_POSTGRES=1 to run against a
    throwaway PostgreSQL container instead.
    """
    if os.environ.get("GROUPADMIN_TEST_POSTGRES"):
        from testcontainers.postgres import PostgresContainer

        with PostgresContainer() as container:
            yield {
                "database_type": "postgres",
                "database_user": container.username,
                "database_password": container.password,
                "database_port": container.get_exposed_port(container.port),
                "database_host": "localhost",
                "database_db": container.dbname,
                "database_echo": False,
            }
    else:
        yield {
            "database_type": "sqlite",
            "database_db": str(tmp_path_factory.mktemp("database") / "test.db"),
            "database_echo": False,
        }


@pytest_asyncio.fixture(scope="session")
def server_settings(database_settings):
    yield Settings(
        **database_settings,
        token_secret="test-secret-that-is-long-enough-for-hs256",
        create_example_data=False,
        seed_default_permissions=False,
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()


@pytest_asyncio.fixture(scope="session")
async def session_manager(server_settings: Settings, database):
    manager = server_settings.async_manager()

    yield manager

    await manager.engine.dispose()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
async def permissions(session_manager):
    async with session_manager.session() as conn:
        async with conn.begin():
            for permission_id, name, action, is_active in PERMISSIONS:
                conn.add(
                    Permission(
                        permission_id=permission_id,
                        name=name,
                        action=action,
                        description=f"{action} {name.lower()}s",
                        is_active=is_active,
                    )
                )

    yield PERMISSIONS


@pytest_asyncio.fixture(scope="session")
def create_organization(session_manager):
    """
    Factory for organizations with unique IDs, so that tests sharing the
    database do not see each other's groups and users.
    """

    async def create(organization_name: str = "Test Organization") -> str:
        organization_id = f"org-{uuid7().hex}"

        async with session_manager.session() as conn:
            async with conn.begin():
                conn.add(
                    Organization(
                        organization_id=organization_id,
                        organization_name=organization_name,
                    )
                )

        return organization_id

    return create


@pytest_asyncio.fixture
async def organization(create_organization, permissions):
    yield await create_organization()


@pytest_asyncio.fixture(scope="session")
def create_user(session_manager):
    """
    Factory for users. By default the user is active, has verified their
    email and completed their first login.
    """

    async def create(
        organization_id: str, first_name: str, last_name: str = "Tester", **flags
    ) -> str:
        user_id = f"user-{uuid7().hex}"

        async with session_manager.session() as conn:
            async with conn.begin():
                conn.add(
                    User(
                        user_id=user_id,
                        organization_id=organization_id,
                        first_name=first_name,
                        last_name=last_name,
                        email_address=f"{first_name.lower()}{user_id[-6:]}@example.com",
                        **{"is_first_login": True, "is_email_verified": True, **flags},
                    )
                )

        return user_id

    return create


@pytest_asyncio.fixture(scope="session")
def create_group(session_manager, logger):
    """
    Factory for groups, created through the service layer.
    """

    async def create(organization_id: str, group_name: str) -> str:
        async with session_manager.session() as conn:
            async with conn.begin():
                response = await groups_service.create_group(
                    model=GroupCreateModel(
                        group_name=group_name, organization_id=organization_id
                    ),
                    acting_user_id=ACTING_USER_ID,
                    conn=conn,
                    log=logger,
                )

        assert response.success, response.error_message
        return response.data.group_id

    return create
