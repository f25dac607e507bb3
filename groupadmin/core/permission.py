"""
Core permission and group-permission data models.
"""

from datetime import datetime

from pydantic import BaseModel

from .models import PageFilter

# Permission display names are `name` and `action` joined by this separator,
# which is also how the permission claims in access tokens are spelled.
PERMISSION_NAME_SEPARATOR = "."


def permission_name(name: str, action: str) -> str:
    return f"{name}{PERMISSION_NAME_SEPARATOR}{action}"


class GroupPermissionsByGroupFilter(PageFilter):
    group_id: str
    permission_name: str | None = None
    search: str | None = None
    is_group_permission: bool | None = None


class PermissionData(BaseModel):
    permission_id: str
    permission_name: str
    action: str
    description: str | None
    is_group_permission: bool
    is_active: bool


class GroupPermissionSaveDeleteModel(BaseModel):
    organization_id: str | None = None
    group_id: str | None = None
    permission_id: str | None = None


class GroupPermissionData(BaseModel):
    group_permission_id: str
    organization_id: str
    group_id: str
    permission_id: str
    is_active: bool
    created_by: str | None
    created_on: datetime | None
    modified_by: str | None
    modified_on: datetime | None
