"""
Group membership.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from groupadmin.core import claims
from groupadmin.core.audit import AuditAction, AuditSection, SystemRemarks
from groupadmin.core.auth import CallerData
from groupadmin.core.models import ResponseModel
from groupadmin.core.user import (
    GroupsByUserFilter,
    GroupUserListItem,
    GroupUserMappingData,
    GroupUserMappingSaveDeleteModel,
    GroupUserModel,
    GroupUsersByOrganizationFilter,
    UserGroupModel,
    UsersByGroupFilter,
)
from groupadmin.service import group_users as group_users_service

from . import audit
from .auth import CallerDependency, require_claim
from .dependencies import DatabaseDependency, LoggerDependency

MemberReader = Annotated[CallerData, Depends(require_claim(claims.GroupUser.READ))]
MemberAdder = Annotated[CallerData, Depends(require_claim(claims.GroupUser.CREATE))]
MemberRemover = Annotated[
    CallerData, Depends(require_claim(claims.GroupUser.DELETE))
]

KEY_TYPE = "GroupUserMapping"

group_user_app = APIRouter(tags=["Group Users"])


@group_user_app.post(
    "/list",
    summary="Users of an organization for a group",
    description=(
        "Users of the organization that are not in another group, flagged "
        "with whether they are in this one. Requires `GroupUser.Read`."
    ),
)
async def list_organization_users(
    user_filter: GroupUsersByOrganizationFilter,
    caller: MemberReader,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[list[GroupUserListItem]]:
    return await group_users_service.get_users_by_organization(
        user_filter=user_filter, conn=conn, log=log.bind(user_id=caller.user_id)
    )


@group_user_app.post(
    "/users-by-group",
    summary="Members of a group",
    description="Requires `GroupUser.Read`.",
)
async def list_group_users(
    user_filter: UsersByGroupFilter,
    caller: MemberReader,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupUserModel]:
    return await group_users_service.get_users_by_group(
        user_filter=user_filter, conn=conn, log=log.bind(user_id=caller.user_id)
    )


@group_user_app.post(
    "/groups-by-user",
    summary="Groups of a user",
)
async def list_user_groups(
    group_filter: GroupsByUserFilter,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[UserGroupModel]:
    return await group_users_service.get_groups_by_user(
        group_filter=group_filter, conn=conn, log=log.bind(user_id=caller.user_id)
    )


@group_user_app.post(
    "/create",
    summary="Add a user to a group",
    description="Requires `GroupUser.Create`.",
)
async def save_group_user(
    model: GroupUserMappingSaveDeleteModel,
    request: Request,
    caller: MemberAdder,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupUserMappingData]:
    log = log.bind(user_id=caller.user_id)

    response = await group_users_service.save_group_user_mapping(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.ADD,
        section=AuditSection.GROUP_USER_MAPPING,
        key_type=KEY_TYPE,
        key_id=response.data.group_user_mapping_id if response.success else None,
        system_remarks=SystemRemarks.ADD_GROUP_USER,
        request_parameters=model,
        conn=conn,
        log=log,
    )


@group_user_app.delete(
    "/delete",
    summary="Remove a user from a group",
    description="Requires `GroupUser.Delete`.",
)
async def delete_group_user(
    model: GroupUserMappingSaveDeleteModel,
    request: Request,
    caller: MemberRemover,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[str]:
    log = log.bind(user_id=caller.user_id)

    response = await group_users_service.delete_group_user_mapping(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.DELETE,
        section=AuditSection.GROUP_USER_MAPPING,
        key_type=KEY_TYPE,
        key_id=response.data if response.success else None,
        system_remarks=SystemRemarks.REMOVE_GROUP_USER,
        request_parameters=model,
        conn=conn,
        log=log,
    )
