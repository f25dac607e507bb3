"""
Group management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from groupadmin.core import claims
from groupadmin.core.audit import AuditAction, AuditSection, SystemRemarks
from groupadmin.core.auth import CallerData
from groupadmin.core.group import (
    GroupCreateModel,
    GroupData,
    GroupDetailData,
    GroupFilter,
    GroupUpdateModel,
)
from groupadmin.core.models import KeyValueModel, ResponseModel
from groupadmin.core.user import AvailableUserData
from groupadmin.service import group_users as group_users_service
from groupadmin.service import groups as groups_service

from . import audit
from .auth import CallerDependency, require_claim
from .dependencies import DatabaseDependency, LoggerDependency

AdminPanelCaller = Annotated[
    CallerData, Depends(require_claim(claims.Dashboard.ADMIN_PANEL))
]
GroupReader = Annotated[CallerData, Depends(require_claim(claims.Group.READ))]
GroupCreator = Annotated[CallerData, Depends(require_claim(claims.Group.CREATE))]
GroupUpdater = Annotated[CallerData, Depends(require_claim(claims.Group.UPDATE))]
GroupDeleter = Annotated[CallerData, Depends(require_claim(claims.Group.DELETE))]

KEY_TYPE = "Group"

group_app = APIRouter(tags=["Group Management"])


@group_app.get(
    "/key-value",
    summary="Groups for a dropdown",
    description=(
        "Active groups of the caller's organization as key/value pairs, "
        "optionally filtered by a substring of the group name."
    ),
)
async def group_key_values(
    caller: AdminPanelCaller,
    conn: DatabaseDependency,
    log: LoggerDependency,
    search: str | None = None,
) -> ResponseModel[list[KeyValueModel[str, str]]]:
    return await groups_service.get_group_key_values(
        search=search, organization_id=caller.organization_id, conn=conn, log=log
    )


@group_app.post(
    "/list",
    summary="List groups",
    description=(
        "Filtered, sorted and paginated list of groups. The organization "
        "defaults to the caller's and `is_active` defaults to true."
    ),
)
async def list_groups(
    group_filter: GroupFilter,
    request: Request,
    caller: GroupReader,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[list[GroupData]]:
    log = log.bind(user_id=caller.user_id)

    if not group_filter.organization_id:
        group_filter.organization_id = caller.organization_id

    if group_filter.is_active is None:
        group_filter.is_active = True

    response = await groups_service.get_group_list(
        group_filter=group_filter, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.GET,
        section=AuditSection.GROUP,
        key_type=KEY_TYPE,
        system_remarks=SystemRemarks.VIEW_GROUP_LIST,
        request_parameters=group_filter,
        conn=conn,
        log=log,
    )


@group_app.post(
    "/create",
    summary="Create a group",
    description=(
        "Create a group. The organization defaults to the caller's. "
        "Requires `Group.Create`."
    ),
)
async def create_group(
    model: GroupCreateModel,
    request: Request,
    caller: GroupCreator,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupData]:
    log = log.bind(user_id=caller.user_id)

    if not model.organization_id:
        model.organization_id = caller.organization_id

    response = await groups_service.create_group(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.ADD,
        section=AuditSection.GROUP,
        key_type=KEY_TYPE,
        key_id=response.data.group_id if response.success else None,
        system_remarks=SystemRemarks.ADD_GROUP,
        request_parameters=model,
        conn=conn,
        log=log,
    )


@group_app.get(
    "/group-user/available-users",
    summary="Users available for groups",
    description=(
        "Active users of the caller's organization that can be put in a group."
    ),
)
async def available_users(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[list[AvailableUserData]]:
    return await group_users_service.get_all_available_group_users(
        organization_id=caller.organization_id, conn=conn, log=log, is_active=True
    )


@group_app.get(
    "/{group_id}",
    summary="Get a group",
    description=(
        "One group of the caller's organization, with the IDs of its "
        "permissions and its users. The distinct permission actions are "
        "returned in the `permission_actions` metadata."
    ),
)
async def get_group(
    group_id: str,
    request: Request,
    caller: GroupReader,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupDetailData]:
    log = log.bind(user_id=caller.user_id)

    response = await groups_service.get_group(
        group_id=group_id,
        organization_id=caller.organization_id,
        conn=conn,
        log=log,
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.GET,
        section=AuditSection.GROUP,
        key_type=KEY_TYPE,
        key_id=group_id,
        system_remarks=SystemRemarks.VIEW_GROUP_DETAIL,
        request_parameters={"group_id": group_id},
        conn=conn,
        log=log,
    )


@group_app.put(
    "/update",
    summary="Update a group",
    description=(
        "Rename or (de)activate a group of the caller's organization. "
        "Requires `Group.Update`."
    ),
)
async def update_group(
    model: GroupUpdateModel,
    request: Request,
    caller: GroupUpdater,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupData]:
    log = log.bind(user_id=caller.user_id)

    model.organization_id = caller.organization_id

    response = await groups_service.update_group(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.UPDATE,
        section=AuditSection.GROUP,
        key_type=KEY_TYPE,
        key_id=model.group_id,
        system_remarks=SystemRemarks.UPDATE_GROUP,
        request_parameters=model,
        conn=conn,
        log=log,
    )


@group_app.delete(
    "/delete/{group_id}",
    summary="Delete a group",
    description=(
        "Delete a group of the caller's organization together with its "
        "permission links and user mappings. Requires `Group.Delete`."
    ),
)
async def delete_group(
    group_id: str,
    request: Request,
    caller: GroupDeleter,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[str]:
    log = log.bind(user_id=caller.user_id)

    response = await groups_service.delete_group(
        group_id=group_id,
        organization_id=caller.organization_id,
        acting_user_id=caller.user_id,
        conn=conn,
        log=log,
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.DELETE,
        section=AuditSection.GROUP,
        key_type=KEY_TYPE,
        key_id=group_id,
        system_remarks=SystemRemarks.DELETE_GROUP,
        request_parameters={"group_id": group_id},
        conn=conn,
        log=log,
    )
