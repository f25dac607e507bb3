"""
Initial setup of the database: creates the tables, seeds the permissions that
gate the API and, for development, an example organization with an admin
user who holds every permission.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from groupadmin.config.managers import AsyncSessionManager
from groupadmin.config.settings import Settings
from groupadmin.core.claims import ALL_CLAIMS
from groupadmin.core.permission import PERMISSION_NAME_SEPARATOR
from groupadmin.database.organization import Organization
from groupadmin.database.permission import Permission
from groupadmin.database.user import GroupUserMapping, User
from groupadmin.service import groups as groups_service
from groupadmin.service.sequence import next_sequence

SYSTEM_USER_ID = "system"
EXAMPLE_ADMIN_USER_ID = "user-admin"


async def seed_permissions(conn: AsyncSession, log: FilteringBoundLogger) -> int:
    """
    Insert a permission for every API claim that does not have one yet. The
    claim doubles as the permission ID. Returns the number inserted.
    """
    inserted = 0

    for claim in ALL_CLAIMS:
        if await conn.get(Permission, claim) is not None:
            continue

        name, action = claim.split(PERMISSION_NAME_SEPARATOR, 1)

        conn.add(
            Permission(
                permission_id=claim,
                name=name,
                action=action,
                description=f"{action} access to {name}",
            )
        )
        inserted += 1

    await conn.flush()
    await log.ainfo("setup.permissions", number_inserted=inserted)

    return inserted


async def seed_example_organization(
    settings: Settings, conn: AsyncSession, log: FilteringBoundLogger
) -> User:
    """
    Example organization with an `AllPermission` group and an admin user in
    it. Safe to run repeatedly.
    """
    organization_id = settings.example_organization_id

    if await conn.get(Organization, organization_id) is None:
        conn.add(
            Organization(
                organization_id=organization_id,
                organization_name=settings.example_organization_name,
            )
        )
        await conn.flush()

    group = await groups_service.create_all_permission_group(
        organization_id=organization_id,
        acting_user_id=SYSTEM_USER_ID,
        conn=conn,
        log=log,
    )

    admin = await conn.get(User, EXAMPLE_ADMIN_USER_ID)

    if admin is None:
        admin = User(
            user_id=EXAMPLE_ADMIN_USER_ID,
            organization_id=organization_id,
            first_name="Example",
            last_name="Admin",
            email_address="admin@example.com",
            is_first_login=True,
            is_email_verified=True,
        )
        conn.add(admin)
        await conn.flush()

        mapping = GroupUserMapping(
            group_user_mapping_id=await next_sequence(GroupUserMapping, conn=conn),
            organization_id=organization_id,
            group_id=group.group_id,
            user_id=admin.user_id,
        )
        mapping.stamp_created(SYSTEM_USER_ID)
        conn.add(mapping)

        await conn.flush()

    await log.ainfo(
        "setup.example_organization",
        organization_id=organization_id,
        admin_user_id=admin.user_id,
    )

    return admin


async def initial_setup(
    settings: Settings, manager: AsyncSessionManager | None = None
) -> None:
    """
    Create the tables and seed what the settings ask for.
    """
    log = get_logger()
    manager = manager or settings.async_manager()

    await manager.create_all()

    async with manager.session() as conn:
        async with conn.begin():
            if settings.seed_default_permissions:
                await seed_permissions(conn=conn, log=log)

            if settings.create_example_data:
                await seed_example_organization(settings=settings, conn=conn, log=log)
