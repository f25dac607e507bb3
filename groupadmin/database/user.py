"""
ORM for users and their group membership.
"""

from sqlmodel import Field, SQLModel

from groupadmin.core.user import (
    AvailableUserData,
    GroupUserListItem,
    GroupUserMappingData,
    display_name,
)

from .audited import AuditedFields


class User(SQLModel, table=True):
    """
    A user of an organization. Users are registered elsewhere; this service
    only matches them against groups.
    """

    user_id: str = Field(primary_key=True)
    organization_id: str = Field(
        foreign_key="organization.organization_id", index=True
    )
    first_name: str | None = None
    last_name: str | None = None
    email_address: str | None = None

    is_active: bool = True
    is_deleted: bool = False
    # True once the user has completed their first login.
    is_first_login: bool = False
    is_email_verified: bool = False

    @property
    def user_name(self) -> str:
        return display_name(self.first_name, self.last_name)

    def to_list_item(self, is_group_user: bool | None = None) -> GroupUserListItem:
        return GroupUserListItem(
            user_id=self.user_id,
            organization_id=self.organization_id,
            first_name=self.first_name,
            last_name=self.last_name,
            email_address=self.email_address,
            is_group_user=is_group_user,
            is_active=self.is_active,
        )

    def to_available(self) -> AvailableUserData:
        return AvailableUserData(
            user_id=self.user_id,
            user_name=self.user_name,
            email_address=self.email_address,
            is_active=self.is_active,
        )


class GroupUserMapping(AuditedFields, table=True):
    """
    Membership of a user in a group. A user belongs to at most one group, so
    `user_id` is unique; leaving a group deactivates the row.
    """

    __tablename__ = "group_user_mapping"

    group_user_mapping_id: str = Field(primary_key=True)
    group_id: str = Field(foreign_key="group.group_id", ondelete="CASCADE")
    user_id: str = Field(foreign_key="user.user_id", unique=True, ondelete="CASCADE")
    organization_id: str = Field(foreign_key="organization.organization_id")
    is_active: bool = True

    def to_core(self) -> GroupUserMappingData:
        return GroupUserMappingData(
            group_user_mapping_id=self.group_user_mapping_id,
            organization_id=self.organization_id,
            group_id=self.group_id,
            user_id=self.user_id,
            is_active=self.is_active,
            created_by=self.created_by,
            created_on=self.created_on,
            modified_by=self.modified_by,
            modified_on=self.modified_on,
        )
