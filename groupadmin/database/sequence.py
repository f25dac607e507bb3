"""
Per-entity monotonic identifier source.
"""

from sqlmodel import Field, SQLModel


class IdSequence(SQLModel, table=True):
    __tablename__ = "id_sequence"

    entity_name: str = Field(primary_key=True)
    last_value: int = 0
