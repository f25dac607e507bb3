"""
Organization ORM. Organizations own groups and users; they are managed
outside of this service.
"""

from sqlmodel import Field, SQLModel


class Organization(SQLModel, table=True):
    organization_id: str = Field(primary_key=True)
    organization_name: str
    is_active: bool = True
