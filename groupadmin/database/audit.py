"""
Audit trail storage.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel
from uuid_extensions import uuid7


class AuditTrail(SQLModel, table=True):
    __tablename__ = "audit_trail"

    audit_trail_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_type: str
    organization_id: str = Field(index=True)
    key_type: str
    key_id: str | None = None
    url: str
    request_parameters_json: str | None = Field(default=None, sa_column=Column(Text))
    action: str
    section: str
    old_values_json: str | None = Field(default=None, sa_column=Column(Text))
    new_values_json: str | None = Field(default=None, sa_column=Column(Text))
    system_remarks: str
    created_by: str
    created_on: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    ip_address: str | None = None

