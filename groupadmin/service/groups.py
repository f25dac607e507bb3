"""
Service layer for groups.

Every public operation returns a `ResponseModel`; validation problems and
missing records are reported through it rather than raised.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core import messages
from groupadmin.core.audit import snapshot
from groupadmin.core.group import (
    ALL_PERMISSION_GROUP,
    GroupCreateModel,
    GroupData,
    GroupDetailData,
    GroupFilter,
    GroupUpdateModel,
    GroupUserItem,
    is_reserved_group_name,
)
from groupadmin.core.messages import get_message
from groupadmin.core.models import (
    AuditDetail,
    KeyValueModel,
    MetaDataKey,
    ResponseModel,
)
from groupadmin.database.group import Group
from groupadmin.database.organization import Organization
from groupadmin.database.permission import GroupPermission, Permission
from groupadmin.database.user import GroupUserMapping, User

from . import query as query_service
from .sequence import next_sequence


class GroupNotFound(Exception):
    pass


GROUP_SORT_COLUMNS = {
    "groupname": Group.group_name,
    "organizationname": Organization.organization_name,
}


async def read_by_id(
    group_id: str,
    organization_id: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a group by its ID.

    Parameters
    ----------
    group_id: str
        The ID of the group to read.
    organization_id: str | None
        When given, the group must belong to this organization.
    conn: AsyncSession
        The database session.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    GroupNotFound
        If the group does not exist (in that organization).
    """
    log = log.bind(group_id=group_id, organization_id=organization_id)

    query = select(Group).where(Group.group_id == group_id)

    if organization_id is not None:
        query = query.where(Group.organization_id == organization_id)

    group = (await conn.execute(query)).scalar_one_or_none()

    if group is None:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")

    await log.adebug("group.found")
    return group


async def name_exists(
    group_name: str,
    organization_id: str,
    conn: AsyncSession,
    exclude_group_id: str | None = None,
) -> bool:
    """
    Whether `organization_id` already has a group called `group_name`,
    compared case-insensitively.
    """
    query = (
        select(func.count())
        .select_from(Group)
        .where(
            Group.organization_id == organization_id,
            func.lower(Group.group_name) == group_name.strip().lower(),
        )
    )

    if exclude_group_id is not None:
        query = query.where(Group.group_id != exclude_group_id)

    return (await conn.scalar(query)) > 0


async def get_group_list(
    group_filter: GroupFilter,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[list[GroupData]]:
    """
    Filtered, sorted and paginated list of groups with their organization
    name. The `AllPermission` group is never listed. `total_records` in the
    metadata counts the filtered set before pagination.
    """
    log = log.bind(**group_filter.model_dump(exclude_none=True))

    query = (
        select(Group, Organization.organization_name)
        .join(Organization, Organization.organization_id == Group.organization_id)
        .where(Group.group_name != ALL_PERMISSION_GROUP)
    )

    if group_filter.group_name:
        query = query.where(Group.group_name.icontains(group_filter.group_name))

    if group_filter.organization_id:
        query = query.where(Group.organization_id == group_filter.organization_id)

    if group_filter.is_active is not None:
        query = query.where(Group.is_active == group_filter.is_active)

    rows, total_records = await query_service.shape(
        query,
        page_filter=group_filter,
        conn=conn,
        columns=GROUP_SORT_COLUMNS,
        default="groupname",
        tiebreak=(Group.group_id,),
    )

    await log.adebug("group.listed", total_records=total_records)

    return ResponseModel(
        success=True,
        data=[
            group.to_core(organization_name=organization_name)
            for group, organization_name in rows
        ],
        meta_data={MetaDataKey.TOTAL_RECORDS: total_records},
    )


async def get_group_key_values(
    search: str | None,
    organization_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[list[KeyValueModel[str, str]]]:
    """
    Active groups of one organization as (group_id, group_name) pairs, for
    populating dropdowns.
    """
    log = log.bind(search=search, organization_id=organization_id)

    query = select(Group).where(
        Group.organization_id == organization_id,
        Group.is_active.is_(True),
        Group.group_name != ALL_PERMISSION_GROUP,
    )

    if search:
        query = query.where(Group.group_name.icontains(search))

    result = await conn.execute(query.order_by(Group.group_name, Group.group_id))
    groups = result.scalars().all()

    await log.adebug("group.key_values", number_of_groups=len(groups))

    return ResponseModel(
        success=True,
        data=[KeyValueModel(key=g.group_id, value=g.group_name) for g in groups],
    )


async def get_group(
    group_id: str,
    organization_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupDetailData]:
    """
    One group with the permissions linked to it and its eligible users
    (active, email verified, first login completed). The distinct set of
    permission actions is returned in the metadata for grouping in the UI.
    """
    log = log.bind(group_id=group_id, organization_id=organization_id)

    try:
        group = await read_by_id(
            group_id=group_id, organization_id=organization_id, conn=conn, log=log
        )
    except GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))

    permission_ids = (
        await conn.execute(
            select(GroupPermission.permission_id)
            .where(
                GroupPermission.group_id == group_id,
                GroupPermission.is_active.is_(True),
            )
            .order_by(GroupPermission.permission_id)
        )
    ).scalars().all()

    actions = (
        await conn.execute(
            select(Permission.action).distinct().order_by(Permission.action)
        )
    ).scalars().all()

    users = (
        await conn.execute(
            select(User)
            .join(GroupUserMapping, GroupUserMapping.user_id == User.user_id)
            .where(
                GroupUserMapping.group_id == group_id,
                GroupUserMapping.organization_id == organization_id,
                GroupUserMapping.is_active.is_(True),
                User.is_first_login.is_(True),
                User.is_email_verified.is_(True),
                User.is_active.is_(True),
            )
            .order_by(User.first_name, User.last_name, User.user_id)
        )
    ).scalars().all()

    await log.adebug(
        "group.detail",
        number_of_permissions=len(permission_ids),
        number_of_users=len(users),
    )

    return ResponseModel(
        success=True,
        data=GroupDetailData(
            group_id=group.group_id,
            group_name=group.group_name,
            is_active=group.is_active,
            organization_id=organization_id,
            permissions=list(permission_ids),
            group_users=[
                GroupUserItem(user_id=u.user_id, user_name=u.user_name) for u in users
            ],
        ),
        meta_data={MetaDataKey.PERMISSION_ACTIONS: list(actions)},
    )


async def create_group(
    model: GroupCreateModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupData]:
    """
    Create a new group.

    Checks, in order: a request was given; the name and organization are
    present; the name is not reserved. Those problems are returned together
    in `error_message`. Otherwise a duplicate name within the organization
    fails with its own message.
    """
    if model is None:
        await log.ainfo("group.create.invalid_request")
        return ResponseModel.failure(get_message(messages.INVALID_REQUEST))

    group_name = (model.group_name or "").strip()
    organization_id = model.organization_id

    log = log.bind(
        group_name=group_name,
        organization_id=organization_id,
        user_id=acting_user_id,
    )

    errors = []

    if not group_name:
        errors.append(get_message(messages.GROUP_NAME_REQUIRED))

    if not organization_id:
        errors.append(get_message(messages.ORGANIZATION_REQUIRED))

    if is_reserved_group_name(group_name):
        errors.append(get_message(messages.GROUP_NAME_RESERVED, ALL_PERMISSION_GROUP))

    if not errors and await name_exists(group_name, organization_id, conn=conn):
        await log.ainfo("group.exists")
        return ResponseModel.failure(get_message(messages.GROUP_NAME_EXISTS))

    if not errors and await conn.get(Organization, organization_id) is None:
        errors.append(get_message(messages.ORGANIZATION_NOT_FOUND))

    if errors:
        await log.ainfo("group.create.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    group = Group(
        group_id=await next_sequence(Group, conn=conn),
        group_name=group_name,
        organization_id=organization_id,
        is_active=True,
    )
    group.stamp_created(acting_user_id)

    conn.add(group)
    await conn.flush()

    audit = AuditDetail(old_values=None, new_values=snapshot(group))

    await log.ainfo("group.created", group_id=group.group_id)

    return ResponseModel(
        success=True,
        data=group.to_core(),
        message=get_message(messages.GROUP_CREATED, group_name),
        meta_data={MetaDataKey.AUDIT: audit},
    )


async def update_group(
    model: GroupUpdateModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupData]:
    """
    Rename and/or (de)activate a group of the model's organization.
    """
    if model is None:
        await log.ainfo("group.update.invalid_request")
        return ResponseModel.failure(get_message(messages.INVALID_REQUEST))

    group_name = (model.group_name or "").strip()

    log = log.bind(
        group_id=model.group_id,
        group_name=group_name,
        organization_id=model.organization_id,
        user_id=acting_user_id,
    )

    errors = []

    if not model.group_id:
        errors.append(get_message(messages.GROUP_ID_REQUIRED))

    if not group_name:
        errors.append(get_message(messages.GROUP_NAME_REQUIRED))

    if not model.organization_id:
        errors.append(get_message(messages.ORGANIZATION_REQUIRED))

    if is_reserved_group_name(group_name):
        errors.append(get_message(messages.GROUP_NAME_RESERVED, ALL_PERMISSION_GROUP))

    if errors:
        await log.ainfo("group.update.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    try:
        group = await read_by_id(
            group_id=model.group_id,
            organization_id=model.organization_id,
            conn=conn,
            log=log,
        )
    except GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))

    # The sentinel group is invisible to clients.
    if group.group_name == ALL_PERMISSION_GROUP:
        await log.ainfo("group.update.reserved")
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))

    if await name_exists(
        group_name,
        model.organization_id,
        conn=conn,
        exclude_group_id=group.group_id,
    ):
        await log.ainfo("group.exists")
        return ResponseModel.failure(get_message(messages.GROUP_NAME_EXISTS))

    old_values = snapshot(group)

    group.group_name = group_name
    group.is_active = model.is_active
    group.stamp_modified(acting_user_id)

    await conn.flush()

    audit = AuditDetail(old_values=old_values, new_values=snapshot(group))

    await log.ainfo("group.updated")

    return ResponseModel(
        success=True,
        data=group.to_core(),
        message=get_message(messages.GROUP_UPDATED, group_name),
        meta_data={MetaDataKey.AUDIT: audit},
    )


async def delete_group(
    group_id: str,
    organization_id: str,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[str]:
    """
    Delete a group together with its permission links and user mappings.
    The `AllPermission` group cannot be deleted.
    """
    log = log.bind(
        group_id=group_id, organization_id=organization_id, user_id=acting_user_id
    )

    try:
        group = await read_by_id(
            group_id=group_id, organization_id=organization_id, conn=conn, log=log
        )
    except GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))

    if group.group_name == ALL_PERMISSION_GROUP:
        await log.awarning("group.delete.reserved")
        return ResponseModel.failure(
            get_message(messages.GROUP_RESERVED_NOT_DELETABLE, group.group_name)
        )

    old_values = snapshot(group)

    await conn.execute(
        delete(GroupPermission).where(GroupPermission.group_id == group_id)
    )
    await conn.execute(
        delete(GroupUserMapping).where(GroupUserMapping.group_id == group_id)
    )
    await conn.delete(group)
    await conn.flush()

    await log.ainfo("group.deleted")

    return ResponseModel(
        success=True,
        data=group_id,
        message=get_message(messages.GROUP_DELETED, old_values["group_name"]),
        meta_data={
            MetaDataKey.AUDIT: AuditDetail(old_values=old_values, new_values=None)
        },
    )


async def create_all_permission_group(
    organization_id: str,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Ensure `organization_id` has the sentinel `AllPermission` group, linked to
    every active permission. Used when seeding an organization.
    """
    log = log.bind(organization_id=organization_id)

    group = (
        await conn.execute(
            select(Group).where(
                Group.organization_id == organization_id,
                Group.group_name == ALL_PERMISSION_GROUP,
            )
        )
    ).scalar_one_or_none()

    if group is None:
        group = Group(
            group_id=await next_sequence(Group, conn=conn),
            group_name=ALL_PERMISSION_GROUP,
            organization_id=organization_id,
            is_active=True,
        )
        group.stamp_created(acting_user_id)
        conn.add(group)
        await conn.flush()

    linked = set(
        (
            await conn.execute(
                select(GroupPermission.permission_id).where(
                    GroupPermission.group_id == group.group_id
                )
            )
        )
        .scalars()
        .all()
    )

    permission_ids = (
        await conn.execute(
            select(Permission.permission_id).where(Permission.is_active.is_(True))
        )
    ).scalars().all()

    for permission_id in permission_ids:
        if permission_id in linked:
            continue

        group_permission = GroupPermission(
            group_permission_id=await next_sequence(GroupPermission, conn=conn),
            organization_id=organization_id,
            group_id=group.group_id,
            permission_id=permission_id,
            is_active=True,
        )
        group_permission.stamp_created(acting_user_id)
        conn.add(group_permission)

    await conn.flush()

    await log.ainfo("group.all_permission.ensured", group_id=group.group_id)

    return group
