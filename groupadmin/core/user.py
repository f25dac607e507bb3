"""
Core models for users as seen through their group memberships.
"""

from datetime import datetime

from pydantic import BaseModel

from .models import PageFilter


def display_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


class UserNameFilter(PageFilter):
    first_name: str | None = None
    last_name: str | None = None
    email_address: str | None = None


class GroupUsersByOrganizationFilter(UserNameFilter):
    organization_id: str
    group_id: str
    search: str | None = None
    is_group_user: bool | None = None


class UsersByGroupFilter(UserNameFilter):
    group_id: str


class GroupsByUserFilter(PageFilter):
    user_id: str
    organization_id: str | None = None
    is_active: bool | None = None


class GroupUserListItem(BaseModel):
    user_id: str
    organization_id: str
    first_name: str | None
    last_name: str | None
    email_address: str | None
    is_group_user: bool | None = None
    is_active: bool


class GroupUserModel(BaseModel):
    group_id: str
    group_name: str
    group_status: bool
    group_users: list[GroupUserListItem]


class UserGroupItem(BaseModel):
    group_id: str
    group_name: str
    organization_id: str
    is_active: bool


class UserGroupModel(BaseModel):
    user_id: str
    user_name: str
    email_address: str | None
    groups: list[UserGroupItem]


class GroupUserMappingSaveDeleteModel(BaseModel):
    organization_id: str | None = None
    group_id: str | None = None
    user_id: str | None = None


class GroupUserMappingData(BaseModel):
    group_user_mapping_id: str
    organization_id: str
    group_id: str
    user_id: str
    is_active: bool
    created_by: str | None
    created_on: datetime | None
    modified_by: str | None
    modified_on: datetime | None


class AvailableUserData(BaseModel):
    user_id: str
    user_name: str
    email_address: str | None
    is_active: bool
