"""
Permissions and their assignment to groups.
"""

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from groupadmin.core.permission import (
    GroupPermissionData,
    PermissionData,
    permission_name,
)

from .audited import AuditedFields


class Permission(SQLModel, table=True):
    """
    A capability that can be granted to a group. Read-only from the point of
    view of this service.
    """

    permission_id: str = Field(primary_key=True)
    name: str = Field(index=True)
    action: str
    description: str | None = None
    is_active: bool = True

    @property
    def permission_name(self) -> str:
        return permission_name(self.name, self.action)

    def to_core(self, is_group_permission: bool) -> PermissionData:
        return PermissionData(
            permission_id=self.permission_id,
            permission_name=self.permission_name,
            action=self.action,
            description=self.description,
            is_group_permission=is_group_permission,
            is_active=self.is_active,
        )


class GroupPermission(AuditedFields, table=True):
    """
    A grant of one permission to one group. There is at most one row per
    (group, permission) pair; revoking deactivates the row.
    """

    __tablename__ = "group_permission"
    __table_args__ = (
        UniqueConstraint("group_id", "permission_id", name="uq_group_permission"),
    )

    group_permission_id: str = Field(primary_key=True)
    organization_id: str = Field(foreign_key="organization.organization_id")
    group_id: str = Field(foreign_key="group.group_id", ondelete="CASCADE")
    permission_id: str = Field(
        foreign_key="permission.permission_id", ondelete="CASCADE"
    )
    is_active: bool = True

    def to_core(self) -> GroupPermissionData:
        return GroupPermissionData(
            group_permission_id=self.group_permission_id,
            organization_id=self.organization_id,
            group_id=self.group_id,
            permission_id=self.permission_id,
            is_active=self.is_active,
            created_by=self.created_by,
            created_on=self.created_on,
            modified_by=self.modified_by,
            modified_on=self.modified_on,
        )
