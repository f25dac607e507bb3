"""
Service layer for granting permissions to groups.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core import messages
from groupadmin.core.audit import snapshot
from groupadmin.core.messages import get_message
from groupadmin.core.models import AuditDetail, MetaDataKey, ResponseModel
from groupadmin.core.permission import (
    PERMISSION_NAME_SEPARATOR,
    GroupPermissionData,
    GroupPermissionSaveDeleteModel,
    GroupPermissionsByGroupFilter,
    PermissionData,
)
from groupadmin.database.permission import GroupPermission, Permission

from . import groups as groups_service
from . import query as query_service
from .sequence import next_sequence


class PermissionNotFound(Exception):
    pass


# `name.action`, the display name of a permission.
PERMISSION_NAME = Permission.name + PERMISSION_NAME_SEPARATOR + Permission.action
# `nameaction`, also accepted by the name filter and search.
PERMISSION_KEY = Permission.name + Permission.action

PERMISSION_SORT_COLUMNS = {
    "permissionname": PERMISSION_NAME,
    "description": Permission.description,
}


def linked_to_group(group_id: str):
    """
    Correlated EXISTS: the permission has an active grant to `group_id`.
    """
    return (
        select(GroupPermission.group_permission_id)
        .where(
            GroupPermission.permission_id == Permission.permission_id,
            GroupPermission.group_id == group_id,
            GroupPermission.is_active.is_(True),
        )
        .exists()
    )


async def read_permission(permission_id: str, conn: AsyncSession) -> Permission:
    permission = await conn.get(Permission, permission_id)

    if permission is None:
        raise PermissionNotFound(f"Permission with id {permission_id} not found")

    return permission


def validate(model: GroupPermissionSaveDeleteModel | None) -> list[str]:
    """
    Every missing field is reported; checks do not stop at the first error.
    """
    if model is None:
        return [get_message(messages.INVALID_REQUEST)]

    errors = []

    if not model.organization_id:
        errors.append(get_message(messages.ORGANIZATION_REQUIRED))

    if not model.group_id:
        errors.append(get_message(messages.GROUP_REQUIRED))

    if not model.permission_id:
        errors.append(get_message(messages.PERMISSION_REQUIRED))

    return errors


async def get_group_permissions_by_group(
    permission_filter: GroupPermissionsByGroupFilter,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[list[PermissionData]]:
    """
    Active permissions, each flagged with whether it is granted to
    `permission_filter.group_id`.

    With neither a filter nor `sort_by`, granted permissions come first.
    Otherwise the list is sorted by permission name (or description),
    ascending unless `DESC` is asked for.
    """
    log = log.bind(**permission_filter.model_dump(exclude_none=True))

    linked = linked_to_group(permission_filter.group_id)
    filtered = False

    query = select(Permission, linked.label("is_group_permission")).where(
        Permission.is_active.is_(True)
    )

    if permission_filter.permission_name:
        filtered = True
        query = query.where(
            or_(
                PERMISSION_NAME == permission_filter.permission_name,
                PERMISSION_KEY == permission_filter.permission_name,
                Permission.name == permission_filter.permission_name,
            )
        )

    if permission_filter.search:
        filtered = True
        search = permission_filter.search
        query = query.where(
            or_(
                Permission.name.icontains(search),
                Permission.action.icontains(search),
                PERMISSION_NAME.icontains(search),
                PERMISSION_KEY.icontains(search),
                Permission.description.icontains(search),
            )
        )

    if permission_filter.is_group_permission is not None:
        filtered = True
        query = query.where(
            linked if permission_filter.is_group_permission else ~linked
        )

    rows, total_records = await query_service.shape(
        query,
        page_filter=permission_filter,
        conn=conn,
        columns=PERMISSION_SORT_COLUMNS,
        default="permissionname",
        unsorted=(linked.desc(), PERMISSION_NAME.asc()),
        filtered=filtered,
        tiebreak=(Permission.permission_id,),
    )

    if not rows:
        await log.ainfo("group_permission.list.empty", total_records=total_records)
        return ResponseModel.failure(get_message(messages.NO_RECORD_FOUND))

    await log.adebug("group_permission.listed", total_records=total_records)

    return ResponseModel(
        success=True,
        data=[
            permission.to_core(is_group_permission=bool(is_group_permission))
            for permission, is_group_permission in rows
        ],
        meta_data={MetaDataKey.TOTAL_RECORDS: total_records},
    )


async def save_group_permission(
    model: GroupPermissionSaveDeleteModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[GroupPermissionData]:
    """
    Grant a permission to a group.

    There is only ever one row per (group, permission): an existing row is
    reactivated and stamped as modified, otherwise a new one is inserted.
    The before/after snapshot is returned under the `audit` metadata key.
    """
    errors = validate(model)

    if errors:
        await log.ainfo("group_permission.save.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    log = log.bind(
        organization_id=model.organization_id,
        group_id=model.group_id,
        permission_id=model.permission_id,
        user_id=acting_user_id,
    )

    try:
        await groups_service.read_by_id(
            group_id=model.group_id,
            organization_id=model.organization_id,
            conn=conn,
            log=log,
        )
        await read_permission(permission_id=model.permission_id, conn=conn)
    except groups_service.GroupNotFound:
        return ResponseModel.failure(get_message(messages.GROUP_NOT_FOUND))
    except PermissionNotFound:
        await log.ainfo("group_permission.permission_not_found")
        return ResponseModel.failure(get_message(messages.PERMISSION_NOT_FOUND))

    group_permission = (
        await conn.execute(
            select(GroupPermission).where(
                GroupPermission.group_id == model.group_id,
                GroupPermission.permission_id == model.permission_id,
            )
        )
    ).scalar_one_or_none()

    if group_permission is not None:
        old_values = snapshot(group_permission)

        group_permission.is_active = True
        group_permission.stamp_modified(acting_user_id)

        event = "group_permission.reactivated"
    else:
        old_values = None

        group_permission = GroupPermission(
            group_permission_id=await next_sequence(GroupPermission, conn=conn),
            organization_id=model.organization_id,
            group_id=model.group_id,
            permission_id=model.permission_id,
            is_active=True,
        )
        group_permission.stamp_created(acting_user_id)
        conn.add(group_permission)

        event = "group_permission.created"

    await conn.flush()

    audit = AuditDetail(old_values=old_values, new_values=snapshot(group_permission))

    await log.ainfo(event, group_permission_id=group_permission.group_permission_id)

    return ResponseModel(
        success=True,
        data=group_permission.to_core(),
        message=get_message(messages.GROUP_PERMISSION_SAVED),
        meta_data={MetaDataKey.AUDIT: audit},
    )


async def delete_group_permission(
    model: GroupPermissionSaveDeleteModel | None,
    acting_user_id: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> ResponseModel[str]:
    """
    Revoke a permission from a group by deactivating its grant. The row is
    kept so that granting it again reactivates it.
    """
    errors = validate(model)

    if errors:
        await log.ainfo("group_permission.delete.invalid", errors=errors)
        return ResponseModel.failure(errors=errors)

    log = log.bind(
        organization_id=model.organization_id,
        group_id=model.group_id,
        permission_id=model.permission_id,
        user_id=acting_user_id,
    )

    group_permission = (
        await conn.execute(
            select(GroupPermission).where(
                GroupPermission.organization_id == model.organization_id,
                GroupPermission.group_id == model.group_id,
                GroupPermission.permission_id == model.permission_id,
                GroupPermission.is_active.is_(True),
            )
        )
    ).scalar_one_or_none()

    if group_permission is None:
        await log.ainfo("group_permission.not_found")
        return ResponseModel.failure(
            get_message(messages.GROUP_PERMISSION_NOT_FOUND)
        )

    old_values = snapshot(group_permission)

    group_permission.is_active = False
    group_permission.stamp_modified(acting_user_id)

    await conn.flush()

    audit = AuditDetail(old_values=old_values, new_values=snapshot(group_permission))

    await log.ainfo(
        "group_permission.deactivated",
        group_permission_id=group_permission.group_permission_id,
    )

    return ResponseModel(
        success=True,
        data=group_permission.group_permission_id,
        message=get_message(messages.GROUP_PERMISSION_REMOVED),
        meta_data={MetaDataKey.AUDIT: audit},
    )
