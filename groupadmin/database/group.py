"""
Group ORM
"""

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from groupadmin.core.group import GroupData, active_status

from .audited import AuditedFields


class Group(AuditedFields, table=True):
    """
    A named bucket of permissions and users, scoped to one organization.
    """

    __table_args__ = (
        UniqueConstraint("organization_id", "group_name", name="uq_group_name"),
    )

    group_id: str = Field(primary_key=True)
    group_name: str = Field(index=True)
    organization_id: str = Field(
        foreign_key="organization.organization_id", index=True
    )
    is_active: bool = True

    def to_core(self, organization_name: str | None = None) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            group_name=self.group_name,
            is_active=self.is_active,
            status=active_status(self.is_active),
            organization_id=self.organization_id,
            organization_name=organization_name,
        )
