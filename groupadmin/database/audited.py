"""
Created/modified bookkeeping shared by the administrable tables.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def current_time() -> datetime:
    return datetime.now(timezone.utc)


class AuditedFields(SQLModel):
    created_by: str | None = None
    created_on: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)
    )
    modified_by: str | None = None
    modified_on: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)
    )

    def stamp_created(self, user_id: str):
        self.created_by = user_id
        self.created_on = current_time()

    def stamp_modified(self, user_id: str):
        self.modified_by = user_id
        self.modified_on = current_time()
