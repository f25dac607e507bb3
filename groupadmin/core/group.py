"""
Core group data models.
"""

from pydantic import BaseModel

from .models import PageFilter

# Sentinel group holding every permission. It is seeded, never created through
# the API, and hidden from all listings.
ALL_PERMISSION_GROUP = "AllPermission"


def is_reserved_group_name(group_name: str | None) -> bool:
    if not group_name:
        return False
    return group_name.strip().lower() == ALL_PERMISSION_GROUP.lower()


def active_status(is_active: bool | None) -> str:
    return "Active" if is_active else "Inactive"


class GroupFilter(PageFilter):
    group_name: str | None = None
    organization_id: str | None = None
    is_active: bool | None = None


class GroupData(BaseModel):
    group_id: str
    group_name: str
    is_active: bool
    status: str
    organization_id: str
    organization_name: str | None = None


class GroupUserItem(BaseModel):
    user_id: str
    user_name: str


class GroupDetailData(BaseModel):
    group_id: str
    group_name: str
    is_active: bool
    organization_id: str
    permissions: list[str]
    group_users: list[GroupUserItem]


class GroupCreateModel(BaseModel):
    group_name: str | None = None
    organization_id: str | None = None


class GroupUpdateModel(BaseModel):
    group_id: str | None = None
    group_name: str | None = None
    organization_id: str | None = None
    is_active: bool = True
