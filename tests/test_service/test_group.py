"""
Tests the group service layer.
"""

import pytest
from sqlalchemy import func, select

from groupadmin.core import messages
from groupadmin.core.group import (
    ALL_PERMISSION_GROUP,
    GroupCreateModel,
    GroupFilter,
    GroupUpdateModel,
)
from groupadmin.core.messages import get_message
from groupadmin.core.permission import GroupPermissionSaveDeleteModel
from groupadmin.core.user import GroupUserMappingSaveDeleteModel
from groupadmin.database.permission import GroupPermission
from groupadmin.database.user import GroupUserMapping
from groupadmin.service import group_permissions as group_permissions_service
from groupadmin.service import group_users as group_users_service
from groupadmin.service import groups as groups_service


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group(session_manager, logger, organization, create_organization):
    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.create_group(
                model=GroupCreateModel(
                    group_name="  Engineering ", organization_id=organization
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

    assert response.success
    assert response.message == "Group Engineering created successfully."
    assert response.data.group_name == "Engineering"
    assert response.data.status == "Active"
    assert response.audit.old_values is None
    assert response.audit.new_values["group_name"] == "Engineering"
    assert response.audit.new_values["created_by"] == "tester"

    GROUP_ID = response.data.group_id

    # Same name, different case: a duplicate.
    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.create_group(
                model=GroupCreateModel(
                    group_name="engineering", organization_id=organization
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

    assert not response.success
    assert response.message == get_message(messages.GROUP_NAME_EXISTS)

    # Names are only unique within an organization
    other_organization = await create_organization()

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.create_group(
                model=GroupCreateModel(
                    group_name="Engineering", organization_id=other_organization
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

    assert response.success
    assert response.data.group_id != GROUP_ID

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(
                group_id=GROUP_ID, organization_id=organization, conn=conn, log=logger
            )

            assert group.group_name == "Engineering"

            with pytest.raises(groups_service.GroupNotFound):
                await groups_service.read_by_id(
                    group_id=GROUP_ID,
                    organization_id=other_organization,
                    conn=conn,
                    log=logger,
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_validation(session_manager, logger, organization):
    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.create_group(
                model=None, acting_user_id="tester", conn=conn, log=logger
            )

            assert not response.success
            assert response.message == get_message(messages.INVALID_REQUEST)

            # Every problem is reported at once
            response = await groups_service.create_group(
                model=GroupCreateModel(group_name="   "),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.error_message == [
                get_message(messages.GROUP_NAME_REQUIRED),
                get_message(messages.ORGANIZATION_REQUIRED),
            ]

            response = await groups_service.create_group(
                model=GroupCreateModel(
                    group_name=" allpermission ", organization_id=organization
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.error_message == [
                get_message(messages.GROUP_NAME_RESERVED, ALL_PERMISSION_GROUP)
            ]

            response = await groups_service.create_group(
                model=GroupCreateModel(
                    group_name="Orphans", organization_id="org-does-not-exist"
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.error_message == [
                get_message(messages.ORGANIZATION_NOT_FOUND)
            ]


@pytest.mark.asyncio(loop_scope="session")
async def test_group_list(session_manager, logger, organization, create_group):
    for name in ["Gamma", "Alpha", "Beta"]:
        await create_group(organization, name)

    async with session_manager.session() as conn:
        async with conn.begin():
            await groups_service.create_all_permission_group(
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(organization_id=organization),
                conn=conn,
                log=logger,
            )

            assert response.success
            assert response.total_records == 3
            assert [g.group_name for g in response.data] == ["Alpha", "Beta", "Gamma"]
            assert all(
                g.organization_name == "Test Organization" for g in response.data
            )

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(
                    organization_id=organization,
                    sort_by="GroupName",
                    sort_order="desc",
                    page_no=2,
                    page_size=2,
                ),
                conn=conn,
                log=logger,
            )

            # Total is counted before pagination
            assert response.total_records == 3
            assert [g.group_name for g in response.data] == ["Alpha"]

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(
                    organization_id=organization, group_name="AMM"
                ),
                conn=conn,
                log=logger,
            )

            assert [g.group_name for g in response.data] == ["Gamma"]
            assert response.total_records == 1


@pytest.mark.asyncio(loop_scope="session")
async def test_group_list_is_active(
    session_manager, logger, organization, create_group
):
    active_id = await create_group(organization, "Active Group")
    inactive_id = await create_group(organization, "Retired Group")

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=inactive_id,
                    group_name="Retired Group",
                    organization_id=organization,
                    is_active=False,
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert response.success
            assert response.data.status == "Inactive"

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(organization_id=organization, is_active=True),
                conn=conn,
                log=logger,
            )

            assert [g.group_id for g in response.data] == [active_id]

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(organization_id=organization, is_active=False),
                conn=conn,
                log=logger,
            )

            assert [g.group_id for g in response.data] == [inactive_id]

            # Only active groups make it into the dropdown
            response = await groups_service.get_group_key_values(
                search=None, organization_id=organization, conn=conn, log=logger
            )

            assert [(kv.key, kv.value) for kv in response.data] == [
                (active_id, "Active Group")
            ]


@pytest.mark.asyncio(loop_scope="session")
async def test_group_key_values(session_manager, logger, organization, create_group):
    engineering = await create_group(organization, "Engineering")
    await create_group(organization, "Finance")

    async with session_manager.session() as conn:
        async with conn.begin():
            await groups_service.create_all_permission_group(
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            response = await groups_service.get_group_key_values(
                search=None, organization_id=organization, conn=conn, log=logger
            )

            assert [kv.value for kv in response.data] == ["Engineering", "Finance"]

            response = await groups_service.get_group_key_values(
                search="gin", organization_id=organization, conn=conn, log=logger
            )

            assert [kv.key for kv in response.data] == [engineering]


@pytest.mark.asyncio(loop_scope="session")
async def test_get_group(
    session_manager, logger, organization, create_group, create_user, permissions
):
    group_id = await create_group(organization, "Support")

    eligible = await create_user(organization, "Alice")
    unverified = await create_user(organization, "Bob", is_email_verified=False)
    inactive = await create_user(organization, "Carol", is_active=False)

    async with session_manager.session() as conn:
        async with conn.begin():
            for permission_id in ["perm-report-read", "perm-group-read"]:
                response = await group_permissions_service.save_group_permission(
                    model=GroupPermissionSaveDeleteModel(
                        organization_id=organization,
                        group_id=group_id,
                        permission_id=permission_id,
                    ),
                    acting_user_id="tester",
                    conn=conn,
                    log=logger,
                )
                assert response.success

            for user_id in [eligible, unverified, inactive]:
                response = await group_users_service.save_group_user_mapping(
                    model=GroupUserMappingSaveDeleteModel(
                        organization_id=organization, group_id=group_id, user_id=user_id
                    ),
                    acting_user_id="tester",
                    conn=conn,
                    log=logger,
                )
                assert response.success

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.get_group(
                group_id=group_id, organization_id=organization, conn=conn, log=logger
            )

    assert response.success
    assert response.data.group_name == "Support"
    assert response.data.permissions == ["perm-group-read", "perm-report-read"]
    assert [u.user_id for u in response.data.group_users] == [eligible]
    assert response.data.group_users[0].user_name == "Alice Tester"
    assert response.meta_data["permission_actions"] == sorted(
        {action for _, _, action, _ in permissions}
    )

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.get_group(
                group_id=group_id,
                organization_id="org-someone-else",
                conn=conn,
                log=logger,
            )

    assert not response.success
    assert response.message == get_message(messages.GROUP_NOT_FOUND)


@pytest.mark.asyncio(loop_scope="session")
async def test_update_group(session_manager, logger, organization, create_group):
    group_id = await create_group(organization, "Sales")
    await create_group(organization, "Marketing")

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=group_id,
                    group_name="Sales EMEA",
                    organization_id=organization,
                ),
                acting_user_id="editor",
                conn=conn,
                log=logger,
            )

            assert response.success
            assert response.audit.old_values["group_name"] == "Sales"
            assert response.audit.new_values["group_name"] == "Sales EMEA"
            assert response.audit.new_values["modified_by"] == "editor"

            # Keeping its own name is not a duplicate
            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=group_id,
                    group_name="sales emea",
                    organization_id=organization,
                ),
                acting_user_id="editor",
                conn=conn,
                log=logger,
            )

            assert response.success

            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=group_id,
                    group_name="MARKETING",
                    organization_id=organization,
                ),
                acting_user_id="editor",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.message == get_message(messages.GROUP_NAME_EXISTS)

            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=group_id,
                    group_name=ALL_PERMISSION_GROUP,
                    organization_id=organization,
                ),
                acting_user_id="editor",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.error_message == [
                get_message(messages.GROUP_NAME_RESERVED, ALL_PERMISSION_GROUP)
            ]

            response = await groups_service.update_group(
                model=GroupUpdateModel(
                    group_id=group_id,
                    group_name="Hijacked",
                    organization_id="org-someone-else",
                ),
                acting_user_id="editor",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.message == get_message(messages.GROUP_NOT_FOUND)

            response = await groups_service.update_group(
                model=GroupUpdateModel(), acting_user_id="editor", conn=conn, log=logger
            )

            assert not response.success
            assert len(response.error_message) == 3


@pytest.mark.asyncio(loop_scope="session")
async def test_delete_group(
    session_manager, logger, organization, create_group, create_user, permissions
):
    group_id = await create_group(organization, "Temporary")
    user_id = await create_user(organization, "Dana")

    async with session_manager.session() as conn:
        async with conn.begin():
            await group_permissions_service.save_group_permission(
                model=GroupPermissionSaveDeleteModel(
                    organization_id=organization,
                    group_id=group_id,
                    permission_id="perm-user-read",
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )
            await group_users_service.save_group_user_mapping(
                model=GroupUserMappingSaveDeleteModel(
                    organization_id=organization, group_id=group_id, user_id=user_id
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await groups_service.delete_group(
                group_id=group_id,
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

    assert response.success
    assert response.data == group_id
    assert response.message == "Group Temporary deleted successfully."
    assert response.audit.old_values["group_name"] == "Temporary"
    assert response.audit.new_values is None

    async with session_manager.session() as conn:
        async with conn.begin():
            for table in [GroupPermission, GroupUserMapping]:
                count = await conn.scalar(
                    select(func.count())
                    .select_from(table)
                    .where(table.group_id == group_id)
                )
                assert count == 0

            response = await groups_service.delete_group(
                group_id=group_id,
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.message == get_message(messages.GROUP_NOT_FOUND)

    # The name is free again and the user can join another group
    new_group_id = await create_group(organization, "Temporary")

    async with session_manager.session() as conn:
        async with conn.begin():
            response = await group_users_service.save_group_user_mapping(
                model=GroupUserMappingSaveDeleteModel(
                    organization_id=organization, group_id=new_group_id, user_id=user_id
                ),
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert response.success


@pytest.mark.asyncio(loop_scope="session")
async def test_all_permission_group(session_manager, logger, organization, permissions):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create_all_permission_group(
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            # Running it again does not duplicate anything
            again = await groups_service.create_all_permission_group(
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert again.group_id == group.group_id

            linked = (
                await conn.execute(
                    select(GroupPermission.permission_id).where(
                        GroupPermission.group_id == group.group_id
                    )
                )
            ).scalars().all()

            assert sorted(linked) == sorted(
                permission_id
                for permission_id, _, _, is_active in permissions
                if is_active
            )

            response = await groups_service.get_group_list(
                group_filter=GroupFilter(organization_id=organization),
                conn=conn,
                log=logger,
            )

            assert response.total_records == 0

            response = await groups_service.delete_group(
                group_id=group.group_id,
                organization_id=organization,
                acting_user_id="tester",
                conn=conn,
                log=logger,
            )

            assert not response.success
            assert response.message == get_message(
                messages.GROUP_RESERVED_NOT_DELETABLE, ALL_PERMISSION_GROUP
            )
