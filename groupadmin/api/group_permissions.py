"""
Granting and revoking group permissions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from groupadmin.core import claims
from groupadmin.core.audit import AuditAction, AuditSection, SystemRemarks
from groupadmin.core.auth import CallerData
from groupadmin.core.models import ResponseModel
from groupadmin.core.permission import (
    GroupPermissionData,
    GroupPermissionSaveDeleteModel,
    GroupPermissionsByGroupFilter,
    PermissionData,
)
from groupadmin.service import group_permissions as group_permissions_service

from . import audit
from .auth import require_claim
from .dependencies import DatabaseDependency, LoggerDependency

PermissionReader = Annotated[
    CallerData, Depends(require_claim(claims.GroupPermission.READ))
]
PermissionGranter = Annotated[
    CallerData, Depends(require_claim(claims.GroupPermission.CREATE))
]
PermissionRevoker = Annotated[
    CallerData, Depends(require_claim(claims.GroupPermission.DELETE))
]

KEY_TYPE = "GroupPermission"

group_permission_app = APIRouter(tags=["Group Permissions"])


@group_permission_app.post(
    "/list",
    summary="Permissions of a group",
    description=(
        "Every active permission, flagged with whether it is granted to the "
        "group. Requires `GroupPermission.Read`."
    ),
)
async def list_group_permissions(
    permission_filter: GroupPermissionsByGroupFilter,
    caller: PermissionReader,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[list[PermissionData]]:
    return await group_permissions_service.get_group_permissions_by_group(
        permission_filter=permission_filter,
        conn=conn,
        log=log.bind(user_id=caller.user_id),
    )


@group_permission_app.post(
    "/create",
    summary="Grant a permission to a group",
    description="Requires `GroupPermission.Create`.",
)
async def save_group_permission(
    model: GroupPermissionSaveDeleteModel,
    request: Request,
    caller: PermissionGranter,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[GroupPermissionData]:
    log = log.bind(user_id=caller.user_id)

    response = await group_permissions_service.save_group_permission(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.ADD,
        section=AuditSection.GROUP_PERMISSION,
        key_type=KEY_TYPE,
        key_id=response.data.group_permission_id if response.success else None,
        system_remarks=SystemRemarks.ADD_GROUP_PERMISSION,
        request_parameters=model,
        conn=conn,
        log=log,
    )


@group_permission_app.delete(
    "/delete",
    summary="Revoke a permission from a group",
    description="Requires `GroupPermission.Delete`.",
)
async def delete_group_permission(
    model: GroupPermissionSaveDeleteModel,
    request: Request,
    caller: PermissionRevoker,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ResponseModel[str]:
    log = log.bind(user_id=caller.user_id)

    response = await group_permissions_service.delete_group_permission(
        model=model, acting_user_id=caller.user_id, conn=conn, log=log
    )

    return await audit.record(
        request=request,
        caller=caller,
        response=response,
        action=AuditAction.DELETE,
        section=AuditSection.GROUP_PERMISSION,
        key_type=KEY_TYPE,
        key_id=response.data if response.success else None,
        system_remarks=SystemRemarks.REMOVE_GROUP_PERMISSION,
        request_parameters=model,
        conn=conn,
        log=log,
    )
