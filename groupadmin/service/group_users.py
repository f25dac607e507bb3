"""
Service layer for group membership.

A user belongs to at most one group at a time. Leaving a group deactivates
the mapping rather than deleting it, and joining again (the same or another
group) reuses the user's row.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core import messages
from groupadmin.core.audit import snapshot
from groupadmin.core.group import ALL_PERMISSION_GROUP
from groupadmin.core.messages import get_message
from groupadmin.core.models import AuditDetail, MetaDataKey, ResponseModel
from groupadmin.core.user import (
    AvailableUserData,
    GroupsByUserFilter,
    GroupUserListItem,
    GroupUserMappingData,
    GroupUserMappingSaveDeleteModel,
    GroupUserModel,
    GroupUsersByOrganizationFilter,
    UserGroupItem,
    UserGroupModel,
    UserNameFilter,
    UsersByGroupFilter,
)
from groupadmin.database.group import Group
from groupadmin.database.user import GroupUserMapping, User

from . import groups as groups_service
from . import query as query_service
from . import user as user_service
from .sequence import next_sequence

USER_SORT_COLUMNS = {
    "firstname": User.first_name,
    "lastname": User.last_name,
    "emailaddress": User.email_address,
}


def active_mapping(group_id: str, same_group: bool = True):
    """
    Correlated EXISTS over the user's active mapping, either to `group_id` or
    to any group other than it.
    """
    in_group = (
        GroupUserMapping.group_id == group_id
        if same_group
        else GroupUserMapping.group_id != group_id
    )

    return (
        select(GroupUserMapping.group_user_mapping_id)
        .where(
            GroupUserMapping.user_id == User.user_id,
            GroupUserMapping.is_active.is_(True),
            in_group,
        )
        .exists()
    )


def filter_user_names(query, user_filter: UserNameFilter):
    """
    Substring filters on the user's name and email. Returns the query and
    whether anything was filtered.
    """
    filtered = False

    if user_filter.first_name:
        filtered = True
        query = query.where(User.first_name.icontains(user_filter.first_name))

    if user_filter.last_name:
        filtered = True
        query = query.where(User.last_name.icontains(user_filter.last_name))

    if user_filter.email_address:
        filtered = True
        query = query.where(User.email_address.icontains(user_filter.email_address))

    return query, filtered


def validate(model: GroupUserMappingSaveDeleteModel | None) -> list[str]:
    if model is None:
        return [get_message(messages.INVALID_REQUEST)]

    errors = []

    if not model.organization_id:
        errors.append(get_message(messages.ORGANIZATION_REQUIRED))

    if not model.group_id:
        errors.append(get_message(messages.GROUP_REQUIRED))

    if not model.user_id:
        errors.append(get_message(messages.USER_REQUIRED))

    return errors


async def get_users_by_organization(
    user_filter: GroupUsersByOrganizationFilter,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[list[GroupUserListItem]]:
    """
    Users of an organization that can be shown when editing the membership of
    `user_filter.group_id`: active, not deleted, and not an active member of
    some other group. Each is flagged with whether they are in the group.

    With neither a filter nor `sort_by`, current members come first.
    """
    log = log.bind(**user_filter.model_dump(exclude_none=True))

    member = active_mapping(user_filter.group_id)
    in_other_group = active_mapping(user_filter.group_id, same_group=False)

    query = select(User, member.label("is_group_user")).where(
        User.organization_id == user_filter.organization_id,
        User.is_active.is_(True),
        User.is_deleted.is_(False),
        ~in_other_group,
    )

    query, filtered = filter_user_names(query, user_filter)

    if user_filter.search:
        filtered = True
        search = user_filter.search
        query = query.where(
            or_(
                User.first_name.icontains(search),
                User.last_name.icontains(search),
                User.email_address.icontains(search),
            )
        )

    if user_filter.is_group_user is not None:
        filtered = True
        query = query.where(member if user_filter.is_group_user else ~member)

    rows, total_records = await query_service.shape(
        query,
        page_filter=user_filter,
        conn=conn,
        columns=USER_SORT_COLUMNS,
        default="firstname",
        unsorted=(member.desc(), User.first_name.asc()),
        filtered=filtered,
        tiebreak=(User.user_id,),
    )

    if not rows:
        await log.ainfo("group_user.organization.empty")
        return ResponseModel.failure(get_message(messages.NO_USERS_FOUND))

    await log.adebug("group_user.organization.listed", total_records=total_records)

    return ResponseModel(
        success=True,
        data=[
            user.to_list_item(is_group_user=bool(is_group_user))
            for user, is_group_user in rows
        ],
        meta_data={MetaDataKey.TOTAL_RECORDS: total_records},
    )


async def get_users_by_group(
    user_filter: UsersByGroupFilter,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupUserModel]:
    """
    Active members of one group.
    """
    log = log.bind(**user_filter.model_dump(exclude_none=True))

    try:
        group = await groups_service.read_by_id(
            group_id=user_filter.group_id, organization_id=None, conn=conn, log=log
        )
    except groups_service.GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))

    query = (
        select(User)
        .join(GroupUserMapping, GroupUserMapping.user_id == User.user_id)
        .where(
            GroupUserMapping.group_id == group.group_id,
            GroupUserMapping.is_active.is_(True),
        )
    )

    query, _ = filter_user_names(query, user_filter)

    rows, total_records = await query_service.shape(
        query,
        page_filter=user_filter,
        conn=conn,
        columns=USER_SORT_COLUMNS,
        default="firstname",
        tiebreak=(User.user_id,),
    )

    if not rows:
        await log.ainfo("group_user.group.empty")
        return ResponseModel.failure(get_message(messages.NO_USERS_FOUND))

    await log.adebug("group_user.group.listed", total_records=total_records)

    return ResponseModel(
        success=True,
        data=GroupUserModel(
            group_id=group.group_id,
            group_name=group.group_name,
            group_status=group.is_active,
            group_users=[user.to_list_item(is_group_user=True) for (user,) in rows],
        ),
        meta_data={MetaDataKey.TOTAL_RECORDS: total_records},
    )


async def get_groups_by_user(
    group_filter: GroupsByUserFilter,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[UserGroupModel]:
    """
    The groups a user is an active member of. A user with no groups is not an
    error: the list is simply empty.
    """
    log = log.bind(**group_filter.model_dump(exclude_none=True))

    try:
        user = await user_service.read_by_id(
            user_id=group_filter.user_id,
            conn=conn,
            organization_id=group_filter.organization_id,
        )
    except user_service.UserNotFound:
        await log.ainfo("group_user.user_not_found")
        return ResponseModel.failure(get_message(messages.USER_NOT_FOUND))

    query = (
        select(Group)
        .join(GroupUserMapping, GroupUserMapping.group_id == Group.group_id)
        .where(
            GroupUserMapping.user_id == user.user_id,
            GroupUserMapping.is_active.is_(True),
            Group.group_name != ALL_PERMISSION_GROUP,
        )
    )

    if group_filter.organization_id:
        query = query.where(Group.organization_id == group_filter.organization_id)

    if group_filter.is_active is not None:
        query = query.where(Group.is_active == group_filter.is_active)

    rows, total_records = await query_service.shape(
        query,
        page_filter=group_filter,
        conn=conn,
        columns={"groupname": Group.group_name},
        default="groupname",
        tiebreak=(Group.group_id,),
    )

    await log.adebug("group_user.groups.listed", total_records=total_records)

    return ResponseModel(
        success=True,
        data=UserGroupModel(
            user_id=user.user_id,
            user_name=user.user_name,
            email_address=user.email_address,
            groups=[
                UserGroupItem(
                    group_id=group.group_id,
                    group_name=group.group_name,
                    organization_id=group.organization_id,
                    is_active=group.is_active,
                )
                for (group,) in rows
            ],
        ),
        message=None if rows else get_message(messages.NO_GROUPS_FOUND),
        meta_data={MetaDataKey.TOTAL_RECORDS: total_records},
    )


async def save_group_user_mapping(
    model: GroupUserMappingSaveDeleteModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupUserMappingData]:
    """
    Add a user to a group.

    The user's mapping row is reused when there is one: reactivated if it
    points at this group, or moved here if it is inactive. A user who is an
    active member of another group must leave it first.
    """
    errors = validate(model)

    if errors:
        await log.ainfo("group_user.save.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    log = log.bind(
        organization_id=model.organization_id,
        group_id=model.group_id,
        member_id=model.user_id,
        user_id=acting_user_id,
    )

    try:
        await groups_service.read_by_id(
            group_id=model.group_id,
            organization_id=model.organization_id,
            conn=conn,
            log=log,
        )
        await user_service.read_by_id(
            user_id=model.user_id, conn=conn, organization_id=model.organization_id
        )
    except groups_service.GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))
    except user_service.UserNotFound:
        await log.ainfo("group_user.user_not_found")
        return ResponseModel.failure(get_message(messages.USER_NOT_FOUND))

    mapping = (
        await conn.execute(
            select(GroupUserMapping).where(GroupUserMapping.user_id == model.user_id)
        )
    ).scalar_one_or_none()

    if mapping is None:
        old_values = None

        mapping = GroupUserMapping(
            group_user_mapping_id=await next_sequence(GroupUserMapping, conn=conn),
            organization_id=model.organization_id,
            group_id=model.group_id,
            user_id=model.user_id,
            is_active=True,
        )
        mapping.stamp_created(acting_user_id)
        conn.add(mapping)

        event = "group_user.created"
    elif mapping.group_id != model.group_id and mapping.is_active:
        await log.ainfo("group_user.in_other_group", other_group_id=mapping.group_id)
        return ResponseModel.failure(get_message(messages.USER_IN_OTHER_GROUP))
    else:
        old_values = snapshot(mapping)

        if mapping.group_id != model.group_id:
            event = "group_user.moved"
        else:
            event = "group_user.reactivated"

        mapping.group_id = model.group_id
        mapping.organization_id = model.organization_id
        mapping.is_active = True
        mapping.stamp_modified(acting_user_id)

    await conn.flush()

    audit = AuditDetail(old_values=old_values, new_values=snapshot(mapping))

    await log.ainfo(event, group_user_mapping_id=mapping.group_user_mapping_id)

    return ResponseModel(
        success=True,
        data=mapping.to_core(),
        message=get_message(messages.GROUP_USER_SAVED),
        meta_data={MetaDataKey.AUDIT: audit},
    )


async def delete_group_user_mapping(
    model: GroupUserMappingSaveDeleteModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[str]:
    """
    Remove a user from a group by deactivating their mapping.
    """
    errors = validate(model)

    if errors:
        await log.ainfo("group_user.delete.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    log = log.bind(
        organization_id=model.organization_id,
        group_id=model.group_id,
        member_id=model.user_id,
        user_id=acting_user_id,
    )

    mapping = (
        await conn.execute(
            select(GroupUserMapping).where(
                GroupUserMapping.organization_id == model.organization_id,
                GroupUserMapping.group_id == model.group_id,
                GroupUserMapping.user_id == model.user_id,
                GroupUserMapping.is_active.is_(True),
            )
        )
    ).scalar_one_or_none()

    if mapping is None:
        await log.ainfo("group_user.not_found")
        return ResponseModel.failure(get_message(messages.GROUP_USER_NOT_FOUND))

    old_values = snapshot(mapping)

    mapping.is_active = False
    mapping.stamp_modified(acting_user_id)

    await conn.flush()

    audit = AuditDetail(old_values=old_values, new_values=snapshot(mapping))

    await log.ainfo(
        "group_user.deactivated", group_user_mapping_id=mapping.group_user_mapping_id
    )

    return ResponseModel(
        success=True,
        data=mapping.group_user_mapping_id,
        message=get_message(messages.GROUP_USER_REMOVED),
        meta_data={MetaDataKey.AUDIT: audit},
    )


async def get_all_available_group_users(
    organization_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    is_active: bool | None = True,
) -> ResponseModel[list[AvailableUserData]]:
    """
    Users of an organization who can be put in a group: not deleted, email
    verified, first login completed. `is_active=None` lists both active and
    inactive users.
    """
    log = log.bind(organization_id=organization_id, is_active=is_active)

    query = select(User).where(
        User.organization_id == organization_id,
        User.is_deleted.is_(False),
        User.is_first_login.is_(True),
        User.is_email_verified.is_(True),
    )

    if is_active is not None:
        query = query.where(User.is_active == is_active)

    result = await conn.execute(
        query.order_by(User.first_name, User.last_name, User.user_id)
    )
    users = result.scalars().all()

    await log.adebug("group_user.available", number_of_users=len(users))

    return ResponseModel(success=True, data=[u.to_available() for u in users])
