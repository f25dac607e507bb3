"""
Tests seeding a fresh database.
"""

import pytest
from sqlalchemy import func, select

from groupadmin.api.setup import EXAMPLE_ADMIN_USER_ID, initial_setup
from groupadmin.config.settings import Settings
from groupadmin.core.claims import ALL_CLAIMS
from groupadmin.core.group import ALL_PERMISSION_GROUP
from groupadmin.database.group import Group
from groupadmin.database.permission import GroupPermission, Permission
from groupadmin.database.user import GroupUserMapping


@pytest.mark.asyncio(loop_scope="session")
async def test_initial_setup(tmp_path):
    settings = Settings(
        database_type="sqlite",
        database_db=str(tmp_path / "setup.db"),
        create_example_data=True,
        seed_default_permissions=True,
    )
    manager = settings.async_manager()

    # Twice, to check that seeding is repeatable
    await initial_setup(settings=settings, manager=manager)
    await initial_setup(settings=settings, manager=manager)

    async with manager.session() as conn:
        async with conn.begin():
            permissions = (await conn.execute(select(Permission))).scalars().all()

            assert sorted(p.permission_id for p in permissions) == sorted(ALL_CLAIMS)
            assert all(p.permission_name == p.permission_id for p in permissions)

            group = (
                await conn.execute(
                    select(Group).where(
                        Group.organization_id == settings.example_organization_id
                    )
                )
            ).scalar_one()

            assert group.group_name == ALL_PERMISSION_GROUP

            linked = await conn.scalar(
                select(func.count())
                .select_from(GroupPermission)
                .where(GroupPermission.group_id == group.group_id)
            )

            assert linked == len(ALL_CLAIMS)

            mapping = (
                await conn.execute(
                    select(GroupUserMapping).where(
                        GroupUserMapping.user_id == EXAMPLE_ADMIN_USER_ID
                    )
                )
            ).scalar_one()

            assert mapping.group_id == group.group_id
            assert mapping.is_active

    await manager.drop_all()
    await manager.engine.dispose()
